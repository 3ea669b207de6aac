# tests/conftest.py
from types import SimpleNamespace as NS
import struct

import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID, ASSOCIATED_TOKEN_PROGRAM_ID

from sapymint.helpers import METADATA_PROGRAM_ID, SYSTEM_PROGRAM_ID, LAMPORTS_PER_SOL
from sapymint.ix import GetAta
from sapymint.metadata import (
    MetadataAccount, Creator, Collection, Uses, GetMetadataPda,
    CREATE_METADATA_ACCOUNT_ARGS_V3_LAYOUT, UPDATE_METADATA_ACCOUNT_ARGS_V2_LAYOUT,
)
from sapymint.tx import SapymintTxParams

FEE_PER_SIGNATURE = 5000
RENT_EXEMPT_MINT  = 1_461_600


class Rejected(Exception):
    pass


class FakeLedgerClient:
    """In-memory stand-in for `solana.rpc.api.Client`.

    Decodes the real signed transactions it receives and applies the effects of
    the system, SPL token, associated token account and token metadata
    instructions. A rejected transaction is recorded with a non-empty `meta.err`
    and leaves the state untouched, the way a validator does with preflight off.
    """

    def __init__(self, faucet=True, confirm=True):
        self.faucet         = faucet
        self.confirm        = confirm
        self.lamports       = {}  # Pubkey -> int
        self.allocated      = {}  # Pubkey -> owner program, created but not initialized
        self.mints          = {}  # Pubkey -> dict
        self.token_accounts = {}  # Pubkey -> dict
        self.metadata       = {}  # Pubkey -> bytes
        self.transactions   = {}  # Signature -> err
        self.airdrops       = []
        self.ata_creations  = 0
        self.sent           = []

    # ---- balances / faucet ------------------------------------------------

    def get_balance(self, pubkey, commitment=None):
        return NS(value=self.lamports.get(pubkey, 0))

    def request_airdrop(self, pubkey, lamports, commitment=None):
        if not self.faucet:
            raise RPCException({"code": -32600, "message": "airdrop request failed"})
        self.lamports[pubkey] = self.lamports.get(pubkey, 0) + lamports
        sig = Signature.new_unique()
        self.transactions[sig] = None
        self.airdrops.append((pubkey, lamports))
        return NS(value=sig)

    def confirm_transaction(self, tx_sig, commitment=None, sleep_seconds=0.5, last_valid_block_height=None):
        return NS(value=[NS(err=self.transactions.get(tx_sig))])

    # ---- transactions -----------------------------------------------------

    def get_latest_blockhash(self, commitment=None):
        return NS(value=NS(blockhash=Hash.new_unique(), last_valid_block_height=1000))

    def get_minimum_balance_for_rent_exemption(self, usize, commitment=None):
        return NS(value=RENT_EXEMPT_MINT)

    def send_raw_transaction(self, txn, opts=None):
        tx = Transaction.from_bytes(txn)
        tx.verify()
        self.sent.append(tx)
        sig = tx.signatures[0]

        snapshot = (dict(self.lamports), dict(self.allocated),
                    {k: dict(v) for k, v in self.mints.items()},
                    {k: dict(v) for k, v in self.token_accounts.items()},
                    dict(self.metadata), self.ata_creations)
        try:
            self._apply(tx)
            err = None
        except Rejected as e:
            (self.lamports, self.allocated, self.mints,
             self.token_accounts, self.metadata, self.ata_creations) = snapshot
            err = str(e)
        self.transactions[sig] = err
        return NS(value=sig)

    def get_transaction(self, tx_sig, encoding="json", commitment=None, max_supported_transaction_version=None):
        if not self.confirm or tx_sig not in self.transactions:
            return NS(value=None)
        return NS(value=NS(transaction=NS(meta=NS(err=self.transactions[tx_sig]))))

    # ---- accounts ---------------------------------------------------------

    def get_account_info(self, pubkey, commitment=None, encoding="base64", data_slice=None):
        if pubkey in self.metadata:
            return NS(value=NS(owner=METADATA_PROGRAM_ID, data=self.metadata[pubkey]))
        if pubkey in self.mints or pubkey in self.token_accounts or pubkey in self.allocated:
            return NS(value=NS(owner=TOKEN_PROGRAM_ID, data=b""))
        if self.lamports.get(pubkey, 0) > 0:
            return NS(value=NS(owner=SYSTEM_PROGRAM_ID, data=b""))
        return NS(value=None)

    def get_token_accounts_by_owner_json_parsed(self, owner, opts, commitment=None):
        return NS(value=[NS(pubkey=address) for address, account in self.token_accounts.items()
                         if account["owner"] == owner and (opts.mint is None or account["mint"] == opts.mint)])

    def get_token_account_balance(self, pubkey, commitment=None):
        if pubkey not in self.token_accounts:
            raise RPCException({"code": -32602, "message": "Invalid param: could not find account"})
        account = self.token_accounts[pubkey]
        return NS(value=NS(amount=str(account["amount"]), decimals=self.mints[account["mint"]]["decimals"]))

    def get_token_supply(self, pubkey, commitment=None):
        if pubkey not in self.mints:
            raise RPCException({"code": -32602, "message": "Invalid param: not a Token mint"})
        mint = self.mints[pubkey]
        return NS(value=NS(amount=str(mint["supply"]), decimals=mint["decimals"]))

    # ---- instruction effects ----------------------------------------------

    def _apply(self, tx):
        msg     = tx.message
        keys    = list(msg.account_keys)
        signers = set(keys[:msg.header.num_required_signatures])
        payer   = keys[0]

        fee = FEE_PER_SIGNATURE * len(tx.signatures)
        if self.lamports.get(payer, 0) < fee:
            raise Rejected("InsufficientFundsForFee")
        self.lamports[payer] -= fee

        for ix in msg.instructions:
            program  = keys[ix.program_id_index]
            accounts = [keys[i] for i in bytes(ix.accounts)]
            data     = bytes(ix.data)
            if program == SYSTEM_PROGRAM_ID:
                self._system(accounts, data, signers)
            elif program == TOKEN_PROGRAM_ID:
                self._token(accounts, data, signers)
            elif program == ASSOCIATED_TOKEN_PROGRAM_ID:
                self._ata(accounts, data, signers)
            elif program == METADATA_PROGRAM_ID:
                self._metadata(accounts, data, signers)
            else:
                raise Rejected(f"unexpected program {program}")

    def _exists(self, pubkey):
        return self.get_account_info(pubkey).value is not None

    def _system(self, accounts, data, signers):
        (kind,) = struct.unpack_from("<I", data, 0)
        if kind != 0:
            raise Rejected("only CreateAccount is supported")
        lamports, space = struct.unpack_from("<QQ", data, 4)
        owner = Pubkey.from_bytes(data[20:52])
        source, new = accounts[0], accounts[1]
        if source not in signers or new not in signers:
            raise Rejected("MissingRequiredSignature")
        if self._exists(new):
            raise Rejected("AccountAlreadyInUse")
        if self.lamports.get(source, 0) < lamports:
            raise Rejected("InsufficientFunds")
        self.lamports[source] -= lamports
        self.allocated[new] = owner

    def _token(self, accounts, data, signers):
        if data[0] == 0:  # InitializeMint
            mint = accounts[0]
            if self.allocated.get(mint) != TOKEN_PROGRAM_ID or mint in self.mints:
                raise Rejected("InvalidAccountData")
            freeze = Pubkey.from_bytes(data[35:67]) if data[34] == 1 else None
            self.mints[mint] = {"decimals": data[1], "supply": 0,
                                "mint_authority": Pubkey.from_bytes(data[2:34]), "freeze_authority": freeze}
            del self.allocated[mint]
        elif data[0] == 7:  # MintTo
            (amount,) = struct.unpack_from("<Q", data, 1)
            mint, dest, authority = accounts[0], accounts[1], accounts[2]
            if mint not in self.mints or dest not in self.token_accounts:
                raise Rejected("InvalidAccountData")
            if authority not in signers or self.mints[mint]["mint_authority"] != authority:
                raise Rejected("OwnerMismatch")
            if self.token_accounts[dest]["mint"] != mint:
                raise Rejected("MintMismatch")
            self.mints[mint]["supply"] += amount
            self.token_accounts[dest]["amount"] += amount
        else:
            raise Rejected(f"unsupported token instruction {data[0]}")

    def _ata(self, accounts, data, signers):
        payer, ata, owner, mint = accounts[0], accounts[1], accounts[2], accounts[3]
        if payer not in signers:
            raise Rejected("MissingRequiredSignature")
        if mint not in self.mints:
            raise Rejected("InvalidMint")
        if ata != GetAta(tokenMint=mint, owner=owner):
            raise Rejected("InvalidSeeds")
        if self._exists(ata):
            raise Rejected("AccountAlreadyInUse")
        self.token_accounts[ata] = {"mint": mint, "owner": owner, "amount": 0}
        self.ata_creations += 1

    def _metadata(self, accounts, data, signers):
        if data[0] == 33:  # CreateMetadataAccountV3
            pda, mint, mintAuthority, payer, updateAuthority = accounts[:5]
            if pda != GetMetadataPda(mint):
                raise Rejected("InvalidMetadataKey")
            if pda in self.metadata:
                raise Rejected("AlreadyInitialized")
            if mint not in self.mints:
                raise Rejected("InvalidMint")
            if mintAuthority not in signers or self.mints[mint]["mint_authority"] != mintAuthority:
                raise Rejected("InvalidMintAuthority")
            args = CREATE_METADATA_ACCOUNT_ARGS_V3_LAYOUT.parse(data[1:])
            self.metadata[pda] = self._encode(updateAuthority, mint, args.data, args.is_mutable, False)
        elif data[0] == 15:  # UpdateMetadataAccountV2
            pda, updateAuthority = accounts[:2]
            if pda not in self.metadata:
                raise Rejected("UninitializedAccount")
            current = MetadataAccount.decode(self.metadata[pda])
            if updateAuthority not in signers or current.updateAuthority != updateAuthority:
                raise Rejected("UpdateAuthorityIncorrect")
            if not current.isMutable:
                raise Rejected("DataIsImmutable")
            args = UPDATE_METADATA_ACCOUNT_ARGS_V2_LAYOUT.parse(data[1:])
            isMutable = current.isMutable if args.is_mutable is None else args.is_mutable
            if args.data is None:
                current.isMutable = isMutable
                self.metadata[pda] = current.encode() + bytes(64)
            else:
                self.metadata[pda] = self._encode(current.updateAuthority, current.mint, args.data, isMutable, current.primarySaleHappened)
        else:
            raise Rejected(f"unsupported metadata instruction {data[0]}")

    @staticmethod
    def _encode(updateAuthority, mint, data, isMutable, primarySaleHappened):
        # The program pads strings to their maximum length and over-allocates the account.
        account = MetadataAccount(
            updateAuthority      = updateAuthority,
            mint                 = mint,
            name                 = data.name.ljust(32, "\x00"),
            symbol               = data.symbol.ljust(10, "\x00"),
            uri                  = data.uri.ljust(200, "\x00"),
            sellerFeeBasisPoints = data.seller_fee_basis_points,
            creators             = None if data.creators is None else [Creator.from_borsh(c) for c in data.creators],
            primarySaleHappened  = primarySaleHappened,
            isMutable            = isMutable,
            editionNonce         = 255,
            tokenStandard        = 2,
            collection           = None if data.collection is None else Collection.from_borsh(data.collection),
            uses                 = None if data.uses is None else Uses.from_borsh(data.uses),
        )
        return account.encode() + bytes(64)

    # ---- helpers for tests ------------------------------------------------

    def fund(self, pubkey, lamports=LAMPORTS_PER_SOL):
        self.lamports[pubkey] = self.lamports.get(pubkey, 0) + lamports


@pytest.fixture()
def ledger():
    return FakeLedgerClient()


@pytest.fixture()
def payer(ledger):
    kp = Keypair()
    ledger.fund(kp.pubkey(), 2 * LAMPORTS_PER_SOL)
    return kp


@pytest.fixture()
def tx_params():
    return SapymintTxParams(sleepBetweenRetry=0, maxSecondsPerTx=5)
