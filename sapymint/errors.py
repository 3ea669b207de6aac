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
# module: errors
#
# =============================================================================
# 
from typing import Any

# =============================================================================
#
class SapymintError(Exception):
    pass

# =============================================================================
# Local I/O
#
class KeypairStoreError(SapymintError):
    def __init__(self, path: str, message: str):
        super().__init__(f"Identity persistence failed for `{path}`: {message}")
        self.PATH: str = path

class CorruptKeypairFileError(KeypairStoreError):
    pass

class ConfigError(SapymintError, ValueError):
    pass

# =============================================================================
# Network / RPC, caller may retry
#
class NetworkError(SapymintError):
    pass

class AirdropError(NetworkError):
    pass

# =============================================================================
# Rejections by on-chain programs (or caught locally before sending)
#
class ProgramError(SapymintError):
    pass

class TxFailedError(ProgramError):
    def __init__(self, action: str, status: Any, signature: Any = None):
        super().__init__(f"{action}: transaction {status.name} (signature: {signature})")
        self.ACTION:    str = action
        self.STATUS:    Any = status
        self.SIGNATURE: Any = signature

class InvalidMetadataError(SapymintError, ValueError):
    pass

class DuplicateMetadataError(ProgramError):
    pass

class MetadataNotFoundError(ProgramError):
    pass

class ImmutableMetadataError(ProgramError):
    pass

class UpdateAuthorityMismatchError(ProgramError):
    pass

# =============================================================================
#
