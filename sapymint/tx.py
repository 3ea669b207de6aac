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
# module: tx
#
# =============================================================================
# 
from   solana.rpc.api             import Client
from   solana.rpc.commitment      import Commitment
from   solana.rpc.types           import TxOpts
from   solders.hash               import Hash
from   solders.instruction        import Instruction
from   solders.keypair            import Keypair
from   solders.message            import Message
from   solders.signature          import Signature
from   solders.transaction        import Transaction
from   solders.transaction_status import EncodedTransactionWithStatusMeta
from   typing                     import List, Union
from   dataclasses                import dataclass
from   datetime                   import datetime
from   enum                       import Enum
from  .helpers                    import MakeKeypair, SapymintKeypair, NestedAttributeExists, ExplorerLink
from  .errors                     import TxFailedError
import logging
import time

# ================================================================================
#
@dataclass
class SapymintTxParams:
    maxSecondsPerTx:       int        = 60          # give up waiting for confirmation after that
    sleepBetweenRetry:     float      = 0.5         # pause between confirmation polls
    skipPreFlight:         bool       = False       # simulation errors surface as RPC exceptions
    maxRetries:            int        = 0           # sent once, no automatic resending
    blockhashCommitment:   Commitment = "finalized" #
    transactionCommitment: Commitment = "confirmed" #

# ================================================================================
#
class SapymintTxStatus(Enum):
    PENDING = 1 # Pending transaction is not (yet) processed
    TIMEOUT = 2 # We couldn't wait till transaction gets processed, it MAY be processed
    FAIL    = 3 # 100% Fail
    SUCCESS = 4 # 100% Success

# ================================================================================
#
class SapymintTx:
    def __init__(self, connection: Client, payer: SapymintKeypair, txParams: SapymintTxParams = None):

        self.CONNECTION:       Client                           = connection
        self.PAYER:            Keypair                          =  MakeKeypair(payer)
        self.SIGNERS:          List[Keypair]                    = [MakeKeypair(payer)]
        self.TX_PARAMS:        SapymintTxParams                 = txParams if txParams else SapymintTxParams()
        self.CONFIRMED_TX:     EncodedTransactionWithStatusMeta = None
        self.CONFIRMED_RESULT: SapymintTxStatus                 = SapymintTxStatus.PENDING
        self.MESSAGE:          Message                          = None
        self.BLOCKHASH:        Hash                             = None
        self.RAW_TX:           Transaction                      = None
        self.SENT_DT:          datetime                         = None
        self.TXID:             Signature                        = None

    # ========================================
    # Payer always signs first, extra signers (new mint account, authorities) follow.
    #
    def FromInstructions(self,
                         instructions: Union[Instruction, List[Instruction]],
                         signers:      List[SapymintKeypair] = None) -> "SapymintTx":
        if isinstance(instructions, Instruction):
            instructions = [instructions]
        if signers:
            self.SIGNERS = self.__UniqueSigners([self.PAYER] + [MakeKeypair(s) for s in signers])

        latestBlockHash = self.CONNECTION.get_latest_blockhash(commitment=self.TX_PARAMS.blockhashCommitment).value
        self.BLOCKHASH  = latestBlockHash.blockhash
        self.MESSAGE    = Message.new_with_blockhash(instructions, self.PAYER.pubkey(), self.BLOCKHASH)
        return self

    # ========================================
    #
    @staticmethod
    def __UniqueSigners(signers: List[Keypair]) -> List[Keypair]:
        seen:   set           = set()
        result: List[Keypair] = []
        for signer in signers:
            if signer.pubkey() in seen:
                continue
            seen.add(signer.pubkey())
            result.append(signer)
        return result

    # ========================================
    #
    def Decode(self) -> bytes:
        return bytes(self.RAW_TX)

    # ========================================
    #
    def Sign(self, signersOverride: List[SapymintKeypair] = None) -> "SapymintTx":
        if self.MESSAGE is None:
            raise Exception("SapymintTx::Sign(): no instructions given, call `FromInstructions()` first!")
        signers = self.SIGNERS if signersOverride is None else [MakeKeypair(signer) for signer in signersOverride]
        if not signers:
            raise Exception("SapymintTx::Sign(): no signers specified!")

        self.RAW_TX = Transaction(signers, self.MESSAGE, self.BLOCKHASH)
        return self

    # ========================================
    # Sent exactly once, confirmation is polled by `Confirm()`.
    #
    def Send(self) -> "SapymintTx":
        if self.TXID is not None:
            return self

        txOpts: TxOpts = TxOpts(skip_preflight       = self.TX_PARAMS.skipPreFlight,
                                preflight_commitment = self.TX_PARAMS.transactionCommitment,
                                max_retries          = self.TX_PARAMS.maxRetries)
        self.SENT_DT = datetime.now()
        self.TXID    = self.CONNECTION.send_raw_transaction(txn=self.Decode(), opts=txOpts).value
        logging.debug(f"SapymintTx::Send() sent {self.TXID}")
        return self

    # ========================================
    #
    def Confirm(self) -> SapymintTxStatus:
        if self.CONFIRMED_RESULT != SapymintTxStatus.PENDING:
            return self.CONFIRMED_RESULT

        if self.TXID is None:
            return SapymintTxStatus.PENDING

        if self.CONFIRMED_TX is not None:
            self.CONFIRMED_RESULT = SapymintTxStatus.SUCCESS if self.CONFIRMED_TX.meta.err is None \
                               else SapymintTxStatus.FAIL
            logging.info(f"{self.CONFIRMED_RESULT.name}: {ExplorerLink('tx', self.TXID)}")
            return self.CONFIRMED_RESULT

        if self.TX_PARAMS.maxSecondsPerTx is not None and (datetime.now() - self.SENT_DT).seconds >= self.TX_PARAMS.maxSecondsPerTx:
            self.CONFIRMED_RESULT = SapymintTxStatus.TIMEOUT
            logging.info(f"{self.CONFIRMED_RESULT.name}: {ExplorerLink('tx', self.TXID)}")
            return self.CONFIRMED_RESULT

        trans = self.CONNECTION.get_transaction(tx_sig     = self.TXID,
                                                commitment = self.TX_PARAMS.transactionCommitment,
                                                max_supported_transaction_version=0)

        if NestedAttributeExists(target=trans, attributePath="value.transaction"):
            self.CONFIRMED_TX = trans.value.transaction
            return self.Confirm() # one more pass because we need to hit `if self.CONFIRMED_TX is not None` case

        return self.CONFIRMED_RESULT

    # ========================================
    #
    def SendAndWait(self) -> SapymintTxStatus:
        self.Send()
        while True:
            r: SapymintTxStatus = self.Confirm()
            if r != SapymintTxStatus.PENDING:
                return r

            if self.TX_PARAMS.sleepBetweenRetry and self.TX_PARAMS.sleepBetweenRetry > 0:
                time.sleep(self.TX_PARAMS.sleepBetweenRetry)

# ================================================================================
#
def SendAndConfirmTx(connection:   Client,
                     payer:        SapymintKeypair,
                     instructions: Union[Instruction, List[Instruction]],
                     action:       str,
                     signers:      List[SapymintKeypair] = None,
                     txParams:     SapymintTxParams      = None) -> Signature:
    tx: SapymintTx = SapymintTx(connection=connection, payer=payer, txParams=txParams)
    result: SapymintTxStatus = tx.FromInstructions(instructions=instructions, signers=signers).Sign().SendAndWait()
    if result != SapymintTxStatus.SUCCESS:
        raise TxFailedError(action=action, status=result, signature=tx.TXID)
    return tx.TXID

# ================================================================================
#
