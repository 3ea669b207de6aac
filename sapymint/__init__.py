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
# module: main
#
# =============================================================================
# 
from sapymint.helpers import EnsurePathExists,             \
                             SetupLogging,                 \
                             NestedAttributeExists,        \
                             ExplorerLink,                 \
                             SapymintPubkey,               \
                             MakePubkey,                   \
                             SapymintKeypair,              \
                             MakeKeypair,                  \
                             ToBaseUnits,                  \
                             FromBaseUnits,                \
                             FetchAccount,                 \
                             FetchAccounts,                \
                             LAMPORTS_PER_SOL,             \
                             METADATA_PROGRAM_ID

from sapymint.errors import SapymintError,                \
                            KeypairStoreError,            \
                            CorruptKeypairFileError,      \
                            ConfigError,                  \
                            NetworkError,                 \
                            AirdropError,                 \
                            ProgramError,                 \
                            TxFailedError,                \
                            InvalidMetadataError,         \
                            DuplicateMetadataError,       \
                            MetadataNotFoundError,        \
                            ImmutableMetadataError,       \
                            UpdateAuthorityMismatchError

from sapymint.keypair_store import SaveKeypair,           \
                                   LoadKeypair,           \
                                   LoadOrCreateKeypair

from sapymint.ix import AtaInstruction,               \
                        GetAta,                       \
                        CreateAtaIx,                  \
                        GetOrCreateAtaIx,             \
                        CreateMintIx,                 \
                        MintToIx

from sapymint.tx import SapymintTxParams,    \
                        SapymintTxStatus,    \
                        SapymintTx,          \
                        SendAndConfirmTx

from sapymint.wallet import SapymintWalletReadonly, \
                            SapymintWallet

from sapymint.token import MintInfo,               \
                           TokenAccountResolution, \
                           SapymintToken

from sapymint.metadata import UseMethod,          \
                              Creator,            \
                              Collection,         \
                              Uses,               \
                              MetadataDescriptor, \
                              MetadataAccount,    \
                              MetadataResult,     \
                              GetMetadataPda,     \
                              CreateMetadataIx,   \
                              UpdateMetadataIx,   \
                              SapymintMetadata

from sapymint.config import SapymintConfig

from sapymint.flow import ProvisionResult,     \
                          SapymintProvisioner, \
                          ProvisionToken

# =============================================================================
# 
