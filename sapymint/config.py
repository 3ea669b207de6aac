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
# module: config
#
# =============================================================================
# 
from   dataclasses    import dataclass, field, fields, asdict
from   typing         import Optional
from  .helpers        import LAMPORTS_PER_SOL, DEFAULT_DECIMALS, DEVNET_RPC_ENDPOINT
from  .keypair_store import DEFAULT_KEYPAIR_PATH
from  .metadata       import MetadataDescriptor
from  .tx             import SapymintTxParams
from  .errors         import ConfigError
import json
import os

# =============================================================================
#
RPC_ENDPOINT_ENV:    str = "SAPYMINT_RPC_ENDPOINT"
DEFAULT_MINT_AMOUNT: int = 100_000_000_000 # 100 tokens with 9 decimals

def DefaultMetadata() -> MetadataDescriptor:
    return MetadataDescriptor(name                 = "Your Token Name",
                              symbol               = "YTN",
                              uri                  = "https://example.com/metadata.json",
                              sellerFeeBasisPoints = 0,
                              isMutable            = True)

# =============================================================================
#
@dataclass
class SapymintConfig:
    rpcEndpoint:            str                = DEVNET_RPC_ENDPOINT  #
    commitment:             str                = "confirmed"          #
    keypairPath:            str                = DEFAULT_KEYPAIR_PATH # payer
    mintAuthorityPath:      Optional[str]      = None                 # payer when None
    freezeAuthorityPath:    Optional[str]      = None                 # payer when None
    decimals:               int                = DEFAULT_DECIMALS     #
    mintAmount:             int                = DEFAULT_MINT_AMOUNT  # base units
    requestAirdrop:         bool               = True                 # devnet/testnet only
    minimumBalanceLamports: int                = LAMPORTS_PER_SOL     #
    airdropLamports:        int                = LAMPORTS_PER_SOL     #
    mintAddress:            Optional[str]      = None                 # reuse this mint instead of creating one
    initializeMetadata:     bool               = True                 # False == update existing metadata
    withCreator:            bool               = False                # payer as the single verified creator
    metadata:               MetadataDescriptor = field(default_factory=DefaultMetadata)
    txParams:               SapymintTxParams   = field(default_factory=SapymintTxParams)

    # ========================================
    #
    def Validate(self) -> "SapymintConfig":
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool) or not 0 <= self.decimals <= 255:
            raise ConfigError(f"`decimals` must fit into u8, got {self.decimals}")
        if not isinstance(self.mintAmount, int) or isinstance(self.mintAmount, bool) or self.mintAmount <= 0:
            raise ConfigError(f"`mintAmount` must be a positive integer of base units, got {self.mintAmount!r}")
        for name in ("minimumBalanceLamports", "airdropLamports"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"`{name}` must be a non-negative integer of lamports, got {value!r}")
        # A freshly created mint never has metadata to update.
        if not self.initializeMetadata and self.mintAddress is None:
            raise ConfigError("Updating metadata needs an existing mint, set `mintAddress`")
        self.metadata.Validate(requireAll=self.initializeMetadata)
        return self

    # ========================================
    #
    @classmethod
    def FromDict(cls, obj: dict) -> "SapymintConfig":
        known   = {f.name for f in fields(cls)}
        unknown = sorted(set(obj) - known)
        if unknown:
            raise ConfigError(f"Unknown config options: {', '.join(unknown)}")

        values = dict(obj)
        if "metadata" in values:
            metadata = DefaultMetadata() if values.get("initializeMetadata", True) else MetadataDescriptor()
            for key, value in vars(MetadataDescriptor.from_json(values["metadata"])).items():
                if key in values["metadata"]:
                    setattr(metadata, key, value)
            values["metadata"] = metadata
        elif not values.get("initializeMetadata", True):
            values["metadata"] = MetadataDescriptor()

        if "txParams" in values:
            txKnown   = {f.name for f in fields(SapymintTxParams)}
            txUnknown = sorted(set(values["txParams"]) - txKnown)
            if txUnknown:
                raise ConfigError(f"Unknown txParams options: {', '.join(txUnknown)}")
            values["txParams"] = SapymintTxParams(**values["txParams"])

        return cls(**values)

    @classmethod
    def FromFile(cls, path: str) -> "SapymintConfig":
        return cls.FromDict(cls.ReadFile(path))

    @staticmethod
    def ReadFile(path: str) -> dict:
        try:
            with open(path) as f:
                obj = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Can't read config `{path}`: {e}") from e
        if not isinstance(obj, dict):
            raise ConfigError(f"Config `{path}` must be a JSON object")
        return obj

    # ========================================
    # Environment wins over defaults and files, command line flags win over everything.
    #
    def ApplyEnvironment(self) -> "SapymintConfig":
        endpoint = os.getenv(RPC_ENDPOINT_ENV)
        if endpoint:
            self.rpcEndpoint = endpoint
        return self

    # ========================================
    #
    def to_json(self) -> dict:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["metadata"] = self.metadata.to_json()
        result["txParams"] = asdict(self.txParams)
        return result

# =============================================================================
#
