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
# module: flow
#
# =============================================================================
# 
from   solana.rpc.api        import Client
from   solders.keypair       import Keypair
from   solders.pubkey        import Pubkey
from   solders.signature     import Signature
from   typing                import NamedTuple, Optional
from  .config                import SapymintConfig
from  .helpers               import MakePubkey, ExplorerLink, FromBaseUnits
from  .keypair_store         import LoadOrCreateKeypair
from  .wallet                import SapymintWallet
from  .token                 import SapymintToken, TokenAccountResolution
from  .metadata              import SapymintMetadata, MetadataDescriptor, MetadataResult
from  .errors                import DuplicateMetadataError
import logging

# =============================================================================
#
class ProvisionResult(NamedTuple):
    mint:                Pubkey              #
    tokenAccount:        Pubkey              #
    createdTokenAccount: bool                #
    decimals:            int                 #
    supply:              int                 # raw, base units
    tokenAccountBalance: int                 # raw, base units
    metadataAddress:     Pubkey              #
    metadataSignature:   Optional[Signature] #
    metadataCreated:     bool                #

# =============================================================================
# identity -> funding -> mint -> token account -> mint to -> metadata.
# Any failure aborts the run, steps already on chain stay there.
#
class SapymintProvisioner:
    # ========================================
    #
    def __init__(self, config: SapymintConfig, connection: Client = None):
        self.CONFIG:           SapymintConfig = config.Validate()
        self.CONNECTION:       Client         = connection if connection else Client(config.rpcEndpoint, commitment=config.commitment)
        self.PAYER:            Keypair        = None
        self.MINT_AUTHORITY:   Keypair        = None
        self.FREEZE_AUTHORITY: Keypair        = None
        self.TOKEN:            SapymintToken  = None

    # ========================================
    #
    def LoadIdentities(self) -> Keypair:
        self.PAYER            = LoadOrCreateKeypair(self.CONFIG.keypairPath)
        self.MINT_AUTHORITY   = LoadOrCreateKeypair(self.CONFIG.mintAuthorityPath)   if self.CONFIG.mintAuthorityPath   else self.PAYER
        self.FREEZE_AUTHORITY = LoadOrCreateKeypair(self.CONFIG.freezeAuthorityPath) if self.CONFIG.freezeAuthorityPath else self.PAYER
        logging.info(f"Payer Public Key: {self.PAYER.pubkey()}")
        logging.info(f"Solana Explorer Link for Payer: {ExplorerLink('address', self.PAYER.pubkey())}")
        return self.PAYER

    # ========================================
    #
    def EnsureFunded(self) -> int:
        wallet = SapymintWallet(connection=self.CONNECTION, keypair=self.PAYER, commitment=self.CONFIG.commitment)
        if not self.CONFIG.requestAirdrop:
            balance: int = wallet.GetBalanceLamports()
            logging.info(f"Payer's balance: {balance} lamports, airdrop disabled")
            return balance
        return wallet.EnsureFunded(minimumLamports=self.CONFIG.minimumBalanceLamports,
                                   airdropLamports=self.CONFIG.airdropLamports)

    # ========================================
    #
    def CreateMint(self) -> SapymintToken:
        if self.CONFIG.mintAddress:
            self.TOKEN = SapymintToken(connection=self.CONNECTION, tokenMint=MakePubkey(self.CONFIG.mintAddress), txParams=self.CONFIG.txParams)
            logging.info(f"Reusing existing mint: {self.TOKEN.TOKEN_MINT}")
            return self.TOKEN

        self.TOKEN = SapymintToken.Create(connection      = self.CONNECTION,
                                          payer           = self.PAYER,
                                          mintAuthority   = self.MINT_AUTHORITY.pubkey(),
                                          freezeAuthority = self.FREEZE_AUTHORITY.pubkey(),
                                          decimals        = self.CONFIG.decimals,
                                          txParams        = self.CONFIG.txParams)
        logging.info(f"Initial Supply: {self.TOKEN.GetSupply()}")
        return self.TOKEN

    # ========================================
    #
    def ResolveTokenAccount(self) -> TokenAccountResolution:
        return self.TOKEN.GetOrCreateTokenAccount(walletAddress=self.PAYER.pubkey(), payer=self.PAYER)

    # ========================================
    #
    def Mint(self, tokenAccount: Pubkey) -> int:
        self.TOKEN.MintTo(destination    = tokenAccount,
                          amountLamports = self.CONFIG.mintAmount,
                          mintAuthority  = self.MINT_AUTHORITY,
                          payer          = self.PAYER)
        supply: int = self.TOKEN.GetSupply()
        logging.info(f"Mint Token Updated Supply: {supply}")
        return supply

    # ========================================
    #
    def Metadata(self) -> SapymintMetadata:
        return SapymintMetadata(connection    = self.CONNECTION,
                                tokenMint     = self.TOKEN.TOKEN_MINT,
                                payer         = self.PAYER,
                                mintAuthority = self.MINT_AUTHORITY,
                                txParams      = self.CONFIG.txParams)

    # ========================================
    # A reused mint may already carry metadata, refuse before minting more supply.
    #
    def CheckMetadataCreatable(self) -> None:
        if self.CONFIG.initializeMetadata and self.CONFIG.mintAddress:
            metadata: SapymintMetadata = self.Metadata()
            if metadata.Exists():
                raise DuplicateMetadataError(f"Metadata account {metadata.ADDRESS} already exists for mint {self.TOKEN.TOKEN_MINT}; use the update path instead")

    # ========================================
    #
    def AttachMetadata(self) -> MetadataResult:
        descriptor: MetadataDescriptor = self.CONFIG.metadata
        if self.CONFIG.withCreator:
            descriptor = descriptor.WithCreator(self.PAYER.pubkey())
        return self.Metadata().CreateOrUpdate(descriptor=descriptor, initialize=self.CONFIG.initializeMetadata)

    # ========================================
    #
    def Run(self) -> ProvisionResult:
        self.LoadIdentities()
        self.EnsureFunded()
        self.CreateMint()
        self.CheckMetadataCreatable()
        account: TokenAccountResolution = self.ResolveTokenAccount()
        supply:  int                    = self.Mint(account.pubkey)
        meta:    MetadataResult         = self.AttachMetadata()

        mintInfo = self.TOKEN.GetMintInfo()
        balance  = self.TOKEN.GetAccountBalanceLamports(account.pubkey)
        logging.info(f"Token Account {account.pubkey} holds {FromBaseUnits(balance, mintInfo.decimals)} tokens")
        return ProvisionResult(mint                = self.TOKEN.TOKEN_MINT,
                               tokenAccount        = account.pubkey,
                               createdTokenAccount = account.created,
                               decimals            = mintInfo.decimals,
                               supply              = supply,
                               tokenAccountBalance = balance,
                               metadataAddress     = meta.address,
                               metadataSignature   = meta.signature,
                               metadataCreated     = meta.created)

# =============================================================================
#
def ProvisionToken(config: SapymintConfig, connection: Client = None) -> ProvisionResult:
    return SapymintProvisioner(config=config, connection=connection).Run()

# =============================================================================
#
