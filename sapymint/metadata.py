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
# module: metadata
#
# =============================================================================
# 
import typing
from   dataclasses           import dataclass, field, replace
from   enum                  import IntEnum
from   solana.rpc.api        import Client
from   solana.rpc.commitment import Commitment
from   solders.instruction   import Instruction, AccountMeta
from   solders.keypair       import Keypair
from   solders.pubkey        import Pubkey
from   solders.signature     import Signature
import borsh_construct       as borsh
from  .helpers               import MakePubkey, MakeKeypair, SapymintPubkey, SapymintKeypair, FetchAccount, \
                                    METADATA_PROGRAM_ID, SYSTEM_PROGRAM_ID, SYSVAR_RENT_PUBKEY
from  .tx                    import SapymintTxParams, SendAndConfirmTx
from  .errors                import InvalidMetadataError, DuplicateMetadataError, MetadataNotFoundError, \
                                    ImmutableMetadataError, UpdateAuthorityMismatchError
import logging

# =============================================================================
# Limits enforced by the token metadata program, in bytes.
#
MAX_NAME_LENGTH:             int = 32
MAX_SYMBOL_LENGTH:           int = 10
MAX_URI_LENGTH:              int = 200
MAX_CREATOR_LIMIT:           int = 5
MAX_SELLER_FEE_BASIS_POINTS: int = 10_000

CREATE_METADATA_ACCOUNT_V3_DISCRIMINATOR: int = 33
UPDATE_METADATA_ACCOUNT_V2_DISCRIMINATOR: int = 15
METADATA_V1_KEY:                          int = 4

# =============================================================================
#
PUBKEY_LAYOUT     = borsh.U8[32]
CREATOR_LAYOUT    = borsh.CStruct(
    "address"  / PUBKEY_LAYOUT,
    "verified" / borsh.Bool,
    "share"    / borsh.U8,
)
COLLECTION_LAYOUT = borsh.CStruct(
    "verified" / borsh.Bool,
    "key"      / PUBKEY_LAYOUT,
)
USES_LAYOUT       = borsh.CStruct(
    "use_method" / borsh.U8,
    "remaining"  / borsh.U64,
    "total"      / borsh.U64,
)
DATA_V2_LAYOUT    = borsh.CStruct(
    "name"                    / borsh.String,
    "symbol"                  / borsh.String,
    "uri"                     / borsh.String,
    "seller_fee_basis_points" / borsh.U16,
    "creators"                / borsh.Option(borsh.Vec(CREATOR_LAYOUT)),
    "collection"              / borsh.Option(COLLECTION_LAYOUT),
    "uses"                    / borsh.Option(USES_LAYOUT),
)
# `CollectionDetails::V1 { size }`, we never send it.
COLLECTION_DETAILS_LAYOUT = borsh.CStruct(
    "kind" / borsh.U8,
    "size" / borsh.U64,
)
CREATE_METADATA_ACCOUNT_ARGS_V3_LAYOUT = borsh.CStruct(
    "data"               / DATA_V2_LAYOUT,
    "is_mutable"         / borsh.Bool,
    "collection_details" / borsh.Option(COLLECTION_DETAILS_LAYOUT),
)
UPDATE_METADATA_ACCOUNT_ARGS_V2_LAYOUT = borsh.CStruct(
    "data"                  / borsh.Option(DATA_V2_LAYOUT),
    "new_update_authority"  / borsh.Option(PUBKEY_LAYOUT),
    "primary_sale_happened" / borsh.Option(borsh.Bool),
    "is_mutable"            / borsh.Option(borsh.Bool),
)

# =============================================================================
#
class UseMethod(IntEnum):
    BURN     = 0
    MULTIPLE = 1
    SINGLE   = 2

@dataclass
class Creator:
    address:  Pubkey
    verified: bool = False
    share:    int  = 100

    def to_borsh(self) -> dict:
        return {"address": bytes(self.address), "verified": self.verified, "share": self.share}

    @classmethod
    def from_borsh(cls, obj) -> "Creator":
        return cls(address=Pubkey.from_bytes(bytes(obj.address)), verified=obj.verified, share=obj.share)

@dataclass
class Collection:
    key:      Pubkey
    verified: bool = False

    def to_borsh(self) -> dict:
        return {"verified": self.verified, "key": bytes(self.key)}

    @classmethod
    def from_borsh(cls, obj) -> "Collection":
        return cls(key=Pubkey.from_bytes(bytes(obj.key)), verified=obj.verified)

@dataclass
class Uses:
    useMethod: UseMethod
    remaining: int
    total:     int

    def to_borsh(self) -> dict:
        return {"use_method": int(self.useMethod), "remaining": self.remaining, "total": self.total}

    @classmethod
    def from_borsh(cls, obj) -> "Uses":
        return cls(useMethod=UseMethod(obj.use_method), remaining=obj.remaining, total=obj.total)

# =============================================================================
# Local view of a metadata record. On create every display field is required;
# on update `None` means "keep what is on chain".
#
@dataclass
class MetadataDescriptor:
    name:                 typing.Optional[str]                  = None
    symbol:               typing.Optional[str]                  = None
    uri:                  typing.Optional[str]                  = None
    sellerFeeBasisPoints: typing.Optional[int]                  = None
    creators:             typing.Optional[typing.List[Creator]] = None
    collection:           typing.Optional[Collection]           = None
    uses:                 typing.Optional[Uses]                 = None
    isMutable:            typing.Optional[bool]                 = None

    # ========================================
    #
    def Validate(self, requireAll: bool = True) -> "MetadataDescriptor":
        if requireAll:
            for fieldName in ("name", "symbol", "uri"):
                if getattr(self, fieldName) is None:
                    raise InvalidMetadataError(f"Metadata `{fieldName}` is required")

        for fieldName, limit in (("name", MAX_NAME_LENGTH), ("symbol", MAX_SYMBOL_LENGTH), ("uri", MAX_URI_LENGTH)):
            value = getattr(self, fieldName)
            if value is not None and len(value.encode("utf-8")) > limit:
                raise InvalidMetadataError(f"Metadata `{fieldName}` is longer than {limit} bytes: {value!r}")

        if self.sellerFeeBasisPoints is not None and not 0 <= self.sellerFeeBasisPoints <= MAX_SELLER_FEE_BASIS_POINTS:
            raise InvalidMetadataError(f"Seller fee must be within 0..{MAX_SELLER_FEE_BASIS_POINTS} basis points, got {self.sellerFeeBasisPoints}")

        if self.creators is not None:
            if len(self.creators) > MAX_CREATOR_LIMIT:
                raise InvalidMetadataError(f"At most {MAX_CREATOR_LIMIT} creators allowed, got {len(self.creators)}")
            if self.creators and sum(c.share for c in self.creators) != 100:
                raise InvalidMetadataError("Creator shares must add up to 100")
        return self

    # ========================================
    #
    def MergedOver(self, current: "MetadataAccount") -> "MetadataDescriptor":
        return MetadataDescriptor(
            name                 = self.name                 if self.name                 is not None else current.name,
            symbol               = self.symbol               if self.symbol               is not None else current.symbol,
            uri                  = self.uri                  if self.uri                  is not None else current.uri,
            sellerFeeBasisPoints = self.sellerFeeBasisPoints if self.sellerFeeBasisPoints is not None else current.sellerFeeBasisPoints,
            creators             = self.creators             if self.creators             is not None else current.creators,
            collection           = self.collection           if self.collection           is not None else current.collection,
            uses                 = self.uses                 if self.uses                 is not None else current.uses,
            isMutable            = self.isMutable,
        )

    # ========================================
    #
    def WithCreator(self, address: SapymintPubkey) -> "MetadataDescriptor":
        return replace(self, creators=[Creator(address=MakePubkey(address), verified=True, share=100)])

    # ========================================
    #
    def to_data_v2(self) -> dict:
        return {
            "name":                    self.name,
            "symbol":                  self.symbol,
            "uri":                     self.uri,
            "seller_fee_basis_points": self.sellerFeeBasisPoints if self.sellerFeeBasisPoints is not None else 0,
            "creators":                None if self.creators   is None else [c.to_borsh() for c in self.creators],
            "collection":              None if self.collection is None else self.collection.to_borsh(),
            "uses":                    None if self.uses       is None else self.uses.to_borsh(),
        }

    # ========================================
    #
    def to_json(self) -> dict:
        return {
            "name":                 self.name,
            "symbol":               self.symbol,
            "uri":                  self.uri,
            "sellerFeeBasisPoints": self.sellerFeeBasisPoints,
            "creators":             None if self.creators is None else [{"address": str(c.address), "verified": c.verified, "share": c.share} for c in self.creators],
            "collection":           None if self.collection is None else {"key": str(self.collection.key), "verified": self.collection.verified},
            "uses":                 None if self.uses is None else {"useMethod": self.uses.useMethod.name, "remaining": self.uses.remaining, "total": self.uses.total},
            "isMutable":            self.isMutable,
        }

    @classmethod
    def from_json(cls, obj: dict) -> "MetadataDescriptor":
        creators   = obj.get("creators")
        collection = obj.get("collection")
        uses       = obj.get("uses")
        return cls(
            name                 = obj.get("name"),
            symbol               = obj.get("symbol"),
            uri                  = obj.get("uri"),
            sellerFeeBasisPoints = obj.get("sellerFeeBasisPoints"),
            creators             = None if creators is None else [Creator(address  = MakePubkey(c["address"]),
                                                                          verified = c.get("verified", False),
                                                                          share    = c.get("share", 100)) for c in creators],
            collection           = None if collection is None else Collection(key      = MakePubkey(collection["key"]),
                                                                              verified = collection.get("verified", False)),
            uses                 = None if uses is None else Uses(useMethod = UseMethod[uses["useMethod"].upper()],
                                                                  remaining = uses["remaining"],
                                                                  total     = uses["total"]),
            isMutable            = obj.get("isMutable"),
        )

# =============================================================================
# On-chain `Metadata` account. Trailing fields (collection details,
# programmable config) are not decoded.
#
@dataclass
class MetadataAccount:
    layout: typing.ClassVar = borsh.CStruct(
        "key"                     / borsh.U8,
        "update_authority"        / PUBKEY_LAYOUT,
        "mint"                    / PUBKEY_LAYOUT,
        "name"                    / borsh.String,
        "symbol"                  / borsh.String,
        "uri"                     / borsh.String,
        "seller_fee_basis_points" / borsh.U16,
        "creators"                / borsh.Option(borsh.Vec(CREATOR_LAYOUT)),
        "primary_sale_happened"   / borsh.Bool,
        "is_mutable"              / borsh.Bool,
        "edition_nonce"           / borsh.Option(borsh.U8),
        "token_standard"          / borsh.Option(borsh.U8),
        "collection"              / borsh.Option(COLLECTION_LAYOUT),
        "uses"                    / borsh.Option(USES_LAYOUT),
    )
    updateAuthority:      Pubkey
    mint:                 Pubkey
    name:                 str
    symbol:               str
    uri:                  str
    sellerFeeBasisPoints: int
    creators:             typing.Optional[typing.List[Creator]] = None
    primarySaleHappened:  bool                                  = False
    isMutable:            bool                                  = True
    editionNonce:         typing.Optional[int]                  = None
    tokenStandard:        typing.Optional[int]                  = None
    collection:           typing.Optional[Collection]           = None
    uses:                 typing.Optional[Uses]                 = None
    key:                  int                                   = field(default=METADATA_V1_KEY)

    # ========================================
    #
    @classmethod
    def fetch(cls,
              conn:       Client,
              address:    SapymintPubkey,
              commitment: typing.Optional[Commitment] = None) -> typing.Optional["MetadataAccount"]:

        resp = FetchAccount(connection    = conn,
                            pubkey        = address,
                            requiredOwner = METADATA_PROGRAM_ID,
                            commitment    = commitment)
        return None if resp is None else cls.decode(resp.data)

    # ========================================
    # The program pads strings with zero bytes up to their maximum length.
    #
    @classmethod
    def decode(cls, data: bytes) -> "MetadataAccount":
        dec = MetadataAccount.layout.parse(data)
        return cls(key                  = dec.key,
                   updateAuthority      = Pubkey.from_bytes(bytes(dec.update_authority)),
                   mint                 = Pubkey.from_bytes(bytes(dec.mint)),
                   name                 = dec.name.rstrip("\x00"),
                   symbol               = dec.symbol.rstrip("\x00"),
                   uri                  = dec.uri.rstrip("\x00"),
                   sellerFeeBasisPoints = dec.seller_fee_basis_points,
                   creators             = None if dec.creators   is None else [Creator.from_borsh(c) for c in dec.creators],
                   primarySaleHappened  = dec.primary_sale_happened,
                   isMutable            = dec.is_mutable,
                   editionNonce         = dec.edition_nonce,
                   tokenStandard        = dec.token_standard,
                   collection           = None if dec.collection is None else Collection.from_borsh(dec.collection),
                   uses                 = None if dec.uses       is None else Uses.from_borsh(dec.uses))

    # ========================================
    #
    def encode(self) -> bytes:
        return MetadataAccount.layout.build({
            "key":                     self.key,
            "update_authority":        bytes(self.updateAuthority),
            "mint":                    bytes(self.mint),
            "name":                    self.name,
            "symbol":                  self.symbol,
            "uri":                     self.uri,
            "seller_fee_basis_points": self.sellerFeeBasisPoints,
            "creators":                None if self.creators   is None else [c.to_borsh() for c in self.creators],
            "primary_sale_happened":   self.primarySaleHappened,
            "is_mutable":              self.isMutable,
            "edition_nonce":           self.editionNonce,
            "token_standard":          self.tokenStandard,
            "collection":              None if self.collection is None else self.collection.to_borsh(),
            "uses":                    None if self.uses       is None else self.uses.to_borsh(),
        })

# =============================================================================
#
def GetMetadataPda(tokenMint: SapymintPubkey) -> Pubkey:
    seeds = [b"metadata", bytes(METADATA_PROGRAM_ID), bytes(MakePubkey(tokenMint))]
    return Pubkey.find_program_address(seeds, METADATA_PROGRAM_ID)[0]

# =============================================================================
#
def CreateMetadataIx(tokenMint:       SapymintPubkey,
                     mintAuthority:   SapymintPubkey,
                     payer:           SapymintPubkey,
                     updateAuthority: SapymintPubkey,
                     descriptor:      MetadataDescriptor) -> Instruction:
    args = CREATE_METADATA_ACCOUNT_ARGS_V3_LAYOUT.build({
        "data":               descriptor.to_data_v2(),
        "is_mutable":         True if descriptor.isMutable is None else descriptor.isMutable,
        "collection_details": None,
    })
    accounts = [
        AccountMeta(GetMetadataPda(tokenMint),    is_signer=False, is_writable=True ),
        AccountMeta(MakePubkey(tokenMint),        is_signer=False, is_writable=False),
        AccountMeta(MakePubkey(mintAuthority),    is_signer=True,  is_writable=False),
        AccountMeta(MakePubkey(payer),            is_signer=True,  is_writable=True ),
        AccountMeta(MakePubkey(updateAuthority),  is_signer=True,  is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID,            is_signer=False, is_writable=False),
        AccountMeta(SYSVAR_RENT_PUBKEY,           is_signer=False, is_writable=False),
    ]
    return Instruction(METADATA_PROGRAM_ID, bytes([CREATE_METADATA_ACCOUNT_V3_DISCRIMINATOR]) + args, accounts)

# =============================================================================
#
def UpdateMetadataIx(tokenMint:          SapymintPubkey,
                     updateAuthority:    SapymintPubkey,
                     descriptor:         MetadataDescriptor = None,
                     newUpdateAuthority: SapymintPubkey     = None) -> Instruction:
    args = UPDATE_METADATA_ACCOUNT_ARGS_V2_LAYOUT.build({
        "data":                  None if descriptor is None else descriptor.to_data_v2(),
        "new_update_authority":  None if newUpdateAuthority is None else bytes(MakePubkey(newUpdateAuthority)),
        "primary_sale_happened": None,
        "is_mutable":            None if descriptor is None else descriptor.isMutable,
    })
    accounts = [
        AccountMeta(GetMetadataPda(tokenMint),   is_signer=False, is_writable=True ),
        AccountMeta(MakePubkey(updateAuthority), is_signer=True,  is_writable=False),
    ]
    return Instruction(METADATA_PROGRAM_ID, bytes([UPDATE_METADATA_ACCOUNT_V2_DISCRIMINATOR]) + args, accounts)

# =============================================================================
#
class MetadataResult(typing.NamedTuple):
    address:   Pubkey    #
    signature: Signature #
    created:   bool      # False for the update path

# =============================================================================
#
class SapymintMetadata:
    # ========================================
    # `mintAuthority` and `updateAuthority` default to `payer`.
    #
    def __init__(self,
                 connection:      Client,
                 tokenMint:       SapymintPubkey,
                 payer:           SapymintKeypair,
                 mintAuthority:   SapymintKeypair  = None,
                 updateAuthority: SapymintKeypair  = None,
                 txParams:        SapymintTxParams = None):
        self.CONNECTION:       Client           = connection
        self.TOKEN_MINT:       Pubkey           = MakePubkey(tokenMint)
        self.PAYER:            Keypair          = MakeKeypair(payer)
        self.MINT_AUTHORITY:   Keypair          = MakeKeypair(mintAuthority)   if mintAuthority   else self.PAYER
        self.UPDATE_AUTHORITY: Keypair          = MakeKeypair(updateAuthority) if updateAuthority else self.PAYER
        self.TX_PARAMS:        SapymintTxParams = txParams
        self.ADDRESS:          Pubkey           = GetMetadataPda(self.TOKEN_MINT)

    # ========================================
    #
    def Fetch(self) -> typing.Optional[MetadataAccount]:
        return MetadataAccount.fetch(conn=self.CONNECTION, address=self.ADDRESS)

    def Exists(self) -> bool:
        return self.CONNECTION.get_account_info(pubkey=self.ADDRESS).value is not None

    # ========================================
    #
    def Create(self, descriptor: MetadataDescriptor) -> MetadataResult:
        descriptor.Validate(requireAll=True)
        logging.info(f"Creating metadata for the token {self.TOKEN_MINT} at {self.ADDRESS}")

        # The program rejects a second creation anyway, fail before paying fees.
        if self.Exists():
            raise DuplicateMetadataError(f"Metadata account {self.ADDRESS} already exists for mint {self.TOKEN_MINT}; use the update path instead")

        ix = CreateMetadataIx(tokenMint       = self.TOKEN_MINT,
                              mintAuthority   = self.MINT_AUTHORITY.pubkey(),
                              payer           = self.PAYER.pubkey(),
                              updateAuthority = self.UPDATE_AUTHORITY.pubkey(),
                              descriptor      = descriptor)
        signature: Signature = SendAndConfirmTx(connection   = self.CONNECTION,
                                                payer        = self.PAYER,
                                                instructions = ix,
                                                signers      = [self.MINT_AUTHORITY, self.UPDATE_AUTHORITY],
                                                action       = "SapymintMetadata::Create()",
                                                txParams     = self.TX_PARAMS)
        logging.info(f"Metadata creation transaction ID: {signature}")
        return MetadataResult(address=self.ADDRESS, signature=signature, created=True)

    # ========================================
    # Fetch current record, apply fields that are set in `overrides`, submit.
    #
    def Update(self, overrides: MetadataDescriptor) -> MetadataResult:
        overrides.Validate(requireAll=False)
        logging.info(f"Updating metadata for the token {self.TOKEN_MINT} at {self.ADDRESS}")

        current: MetadataAccount = self.Fetch()
        if current is None:
            raise MetadataNotFoundError(f"No metadata account at {self.ADDRESS} for mint {self.TOKEN_MINT}; create it first")
        if not current.isMutable:
            raise ImmutableMetadataError(f"Metadata account {self.ADDRESS} is immutable")
        if current.updateAuthority != self.UPDATE_AUTHORITY.pubkey():
            raise UpdateAuthorityMismatchError(f"Update authority of {self.ADDRESS} is {current.updateAuthority}, not {self.UPDATE_AUTHORITY.pubkey()}")

        merged: MetadataDescriptor = overrides.MergedOver(current).Validate(requireAll=True)
        ix = UpdateMetadataIx(tokenMint       = self.TOKEN_MINT,
                              updateAuthority = self.UPDATE_AUTHORITY.pubkey(),
                              descriptor      = merged)
        signature: Signature = SendAndConfirmTx(connection   = self.CONNECTION,
                                                payer        = self.PAYER,
                                                instructions = ix,
                                                signers      = [self.UPDATE_AUTHORITY],
                                                action       = "SapymintMetadata::Update()",
                                                txParams     = self.TX_PARAMS)
        logging.info(f"Metadata update transaction ID: {signature}")
        return MetadataResult(address=self.ADDRESS, signature=signature, created=False)

    # ========================================
    #
    def CreateOrUpdate(self, descriptor: MetadataDescriptor, initialize: bool) -> MetadataResult:
        if initialize:
            return self.Create(descriptor)
        return self.Update(descriptor)

# =============================================================================
#
