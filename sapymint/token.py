#!/usr/bin/python
# =============================================================================
#
#  ######     ###    ########  ##    ## ##     ## ####  ##    ## ########
# ##    ##   ## ##   ##     ##  ##  ##  ###   ###  ##   ###   ##    ##
# ##        ##   ##  ##     ##   ####   #### ####  ##   ####  ##    ##
#  ######  ##     ## ########     ##    ## ### ##  ##   ## ## ##    ##
#       ## ######### ##           ##    ##     ##  ##   ##  ####    ##
# ##    ## ##     ## ##           ##    ##     ##  ##   ##   ###    ##
#  ######  ##     ## ##           ##    ##     ## ####  ##    ##    ##
#
# =============================================================================
#
# SuperArmor's Python Solana token provisioning.
# (c) SuperArmor
#
# module: token
#
# =============================================================================
# 
from   solana.rpc.api         import Client
from   solana.rpc.types       import TokenAccountOpts
from   solders.keypair        import Keypair
from   solders.pubkey         import Pubkey
from   solders.signature      import Signature
from   spl.token.constants    import TOKEN_PROGRAM_ID
from   typing                 import List, NamedTuple
from  .helpers                import MakePubkey, MakeKeypair, SapymintPubkey, SapymintKeypair, DEFAULT_DECIMALS, FromBaseUnits, ExplorerLink
from  .ix                     import AtaInstruction, GetAta, GetOrCreateAtaIx, CreateMintIx, MintToIx
from  .tx                     import SapymintTxParams, SendAndConfirmTx
import logging

# =============================================================================
#
class MintInfo(NamedTuple):
    token_mint: Pubkey #
    supply:     int    # raw, base units
    decimals:   int    #

class TokenAccountResolution(NamedTuple):
    pubkey:  Pubkey #
    created: bool   # False when an existing account was reused

# =============================================================================
#
class SapymintToken:
    # ========================================
    #
    def __init__(self, connection: Client, tokenMint: SapymintPubkey, txParams: SapymintTxParams = None, programId: Pubkey = TOKEN_PROGRAM_ID):
        self.CONNECTION: Client           = connection
        self.TOKEN_MINT: Pubkey           = MakePubkey(tokenMint)
        self.PROGRAM_ID: Pubkey           = programId
        self.TX_PARAMS:  SapymintTxParams = txParams

    # ========================================
    # Not idempotent, every call produces a brand new mint.
    #
    @staticmethod
    def Create(connection:      Client,
               payer:           SapymintKeypair,
               mintAuthority:   SapymintPubkey,
               freezeAuthority: SapymintPubkey   = None,
               decimals:        int              = DEFAULT_DECIMALS,
               mintKeypair:     Keypair          = None,
               txParams:        SapymintTxParams = None) -> "SapymintToken":
        payerKeypair: Keypair = MakeKeypair(payer)
        mint:         Keypair = mintKeypair if mintKeypair else Keypair()
        instructions = CreateMintIx(connection      = connection,
                                    payer           = payerKeypair.pubkey(),
                                    mint            = mint.pubkey(),
                                    mintAuthority   = mintAuthority,
                                    freezeAuthority = freezeAuthority,
                                    decimals        = decimals)
        SendAndConfirmTx(connection   = connection,
                         payer        = payerKeypair,
                         instructions = instructions,
                         signers      = [mint],
                         action       = "SapymintToken::Create()",
                         txParams     = txParams)
        logging.info(f"Mint account created with address / public key: {mint.pubkey()}")
        return SapymintToken(connection=connection, tokenMint=mint.pubkey(), txParams=txParams)

    # ========================================
    #
    def GetMintInfo(self) -> MintInfo:
        supply = self.CONNECTION.get_token_supply(self.TOKEN_MINT).value
        return MintInfo(token_mint = self.TOKEN_MINT,
                        supply     = int(supply.amount),
                        decimals   = supply.decimals)

    def GetSupply(self) -> int:
        return self.GetMintInfo().supply

    # ========================================
    #
    def AccountExists(self, accountAddress: SapymintPubkey) -> bool:
        return self.CONNECTION.get_account_info(pubkey=MakePubkey(accountAddress)).value is not None

    # ========================================
    #
    def GetAccountBalanceLamports(self, accountAddress: SapymintPubkey) -> int:
        result = self.CONNECTION.get_token_account_balance(MakePubkey(accountAddress)).value
        return int(result.amount)

    def GetAccountBalance(self, accountAddress: SapymintPubkey) -> float:
        balance: int = self.GetAccountBalanceLamports(accountAddress)
        return float(FromBaseUnits(balance, self.GetMintInfo().decimals))

    # ========================================
    #
    def GetWalletAta(self, walletAddress: SapymintPubkey) -> Pubkey:
        return GetAta(tokenMint=self.TOKEN_MINT, owner=walletAddress)

    # ========================================
    #
    def GetWalletAccountAddresses(self, walletAddress: SapymintPubkey) -> List[Pubkey]:
        owner: Pubkey = MakePubkey(walletAddress)
        accounts = self.CONNECTION.get_token_accounts_by_owner_json_parsed(owner, TokenAccountOpts(mint=self.TOKEN_MINT))
        return [account.pubkey for account in accounts.value]

    # ========================================
    # Any token account of this mint held by `walletAddress`, not only the ATA.
    #
    def FindExistingTokenAccount(self, walletAddress: SapymintPubkey) -> Pubkey:
        accounts: List[Pubkey] = self.GetWalletAccountAddresses(walletAddress)
        return accounts[0] if accounts else None

    # ========================================
    #
    def CreateWalletAta(self,
                        walletAddress: SapymintPubkey,
                        payer:         SapymintKeypair) -> TokenAccountResolution:
        payerKeypair: Keypair        = MakeKeypair(payer)
        ataIx:        AtaInstruction = GetOrCreateAtaIx(connection = self.CONNECTION,
                                                        tokenMint  = self.TOKEN_MINT,
                                                        owner      = MakePubkey(walletAddress),
                                                        payer      = payerKeypair.pubkey())
        if not ataIx.ix:
            return TokenAccountResolution(pubkey=ataIx.pubkey, created=False)

        SendAndConfirmTx(connection   = self.CONNECTION,
                         payer        = payerKeypair,
                         instructions = ataIx.ix,
                         action       = "SapymintToken::CreateWalletAta()",
                         txParams     = self.TX_PARAMS)
        return TokenAccountResolution(pubkey=ataIx.pubkey, created=True)

    # ========================================
    # Check first, create only when the owner holds no account of this mint.
    #
    def GetOrCreateTokenAccount(self,
                                walletAddress: SapymintPubkey,
                                payer:         SapymintKeypair) -> TokenAccountResolution:
        existing: Pubkey = self.FindExistingTokenAccount(walletAddress)
        if existing is not None:
            logging.info(f"Existing Token Account Found: {existing}")
            return TokenAccountResolution(pubkey=existing, created=False)

        result: TokenAccountResolution = self.CreateWalletAta(walletAddress=walletAddress, payer=payer)
        logging.info(f"New Token Account Created: {result.pubkey}" if result.created else f"Existing Token Account Found: {result.pubkey}")
        return result

    # ========================================
    #
    def MintTo(self,
               destination:    SapymintPubkey,
               amountLamports: int,
               mintAuthority:  SapymintKeypair,
               payer:          SapymintKeypair = None) -> Signature:
        if not isinstance(amountLamports, int) or isinstance(amountLamports, bool) or amountLamports <= 0:
            raise ValueError(f"SapymintToken::MintTo(): amount must be a positive integer of base units, got {amountLamports!r}")

        authority:    Keypair = MakeKeypair(mintAuthority)
        payerKeypair: Keypair = MakeKeypair(payer) if payer else authority
        ix = MintToIx(tokenMint      = self.TOKEN_MINT,
                      destination    = destination,
                      mintAuthority  = authority.pubkey(),
                      amountLamports = amountLamports,
                      programId      = self.PROGRAM_ID)
        signature: Signature = SendAndConfirmTx(connection   = self.CONNECTION,
                                                payer        = payerKeypair,
                                                instructions = ix,
                                                signers      = [authority],
                                                action       = "SapymintToken::MintTo()",
                                                txParams     = self.TX_PARAMS)
        logging.info(f"Minted {amountLamports} base units to {destination}: {ExplorerLink('tx', signature)}")
        return signature

# =============================================================================
#
