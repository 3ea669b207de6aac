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
# module: wallet
#
# =============================================================================
# 
from   solana.rpc.api        import Client
from   solana.rpc.commitment import Commitment, Confirmed
from   solana.exceptions     import SolanaRpcException
from   solana.rpc.core       import RPCException, UnconfirmedTxError
from   solders.keypair       import Keypair
from   solders.pubkey        import Pubkey
from   solders.signature     import Signature
from  .helpers               import MakePubkey, MakeKeypair, SapymintKeypair, SapymintPubkey, LAMPORTS_PER_SOL, ExplorerLink
from  .errors                import AirdropError
import logging

# =============================================================================
#
class SapymintWalletReadonly:
    # ========================================
    #
    def __init__(self, connection: Client, pubkey: SapymintPubkey):
        self.CONNECTION: Client  = connection
        self.PUBKEY:     Pubkey  = MakePubkey(pubkey)

    # ========================================
    #
    def GetBalanceLamports(self) -> int:
        return self.CONNECTION.get_balance(self.PUBKEY).value

    # ========================================
    #
    def GetBalanceSol(self) -> float:
        return self.GetBalanceLamports() / LAMPORTS_PER_SOL

# =============================================================================
#
class SapymintWallet(SapymintWalletReadonly):
    def __init__(self, connection: Client, keypair: SapymintKeypair, commitment: Commitment = Confirmed):
        self.CONNECTION: Client     = connection
        self.KEYPAIR:    Keypair    = MakeKeypair(keypair)
        self.PUBKEY:     Pubkey     = self.KEYPAIR.pubkey()
        self.COMMITMENT: Commitment = commitment

    # ========================================
    # Faucet credit, only available on devnet/testnet/localnet. Single attempt.
    #
    def RequestAirdrop(self, lamports: int) -> Signature:
        try:
            signature: Signature = self.CONNECTION.request_airdrop(self.PUBKEY, lamports, commitment=self.COMMITMENT).value
        except (SolanaRpcException, RPCException) as e:
            raise AirdropError(f"Airdrop of {lamports} lamports to {self.PUBKEY} failed: {e}") from e

        if signature is None:
            raise AirdropError(f"Airdrop of {lamports} lamports to {self.PUBKEY} was rejected by the faucet")

        try:
            self.CONNECTION.confirm_transaction(signature, commitment=self.COMMITMENT)
        except (SolanaRpcException, RPCException, UnconfirmedTxError) as e:
            raise AirdropError(f"Airdrop {signature} was not confirmed: {e}") from e

        logging.info(f"Airdrop {lamports / LAMPORTS_PER_SOL} SOL: {ExplorerLink('tx', signature)}")
        return signature

    # ========================================
    #
    def EnsureFunded(self, minimumLamports: int, airdropLamports: int = None) -> int:
        balance: int = self.GetBalanceLamports()
        logging.info(f"Payer's balance: {balance / LAMPORTS_PER_SOL} SOL")
        if balance >= minimumLamports:
            return balance

        self.RequestAirdrop(lamports=airdropLamports if airdropLamports else minimumLamports)
        balance = self.GetBalanceLamports()
        logging.info(f"Payer's balance after airdrop: {balance / LAMPORTS_PER_SOL} SOL")
        return balance

# =============================================================================
#
