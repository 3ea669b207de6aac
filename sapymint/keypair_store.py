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
# module: keypair_store
#
# =============================================================================
# 
from   solders.keypair import Keypair
from  .helpers         import EnsurePathExists
from  .errors          import KeypairStoreError, CorruptKeypairFileError
import logging
import json
import os

# =============================================================================
# Secret key file is a plain JSON array of ints, same as `solana-keygen` output:
# 32 bytes of seed followed by 32 bytes of public key.
#
KEYPAIR_LENGTH:       int = 64
DEFAULT_KEYPAIR_PATH: str = "payer-keypair.json"

# =============================================================================
#
def SaveKeypair(keypair: Keypair, path: str = DEFAULT_KEYPAIR_PATH) -> None:
    try:
        EnsurePathExists(os.path.dirname(path))
        with open(path, "w") as f:
            json.dump(list(bytes(keypair)), f)
    except OSError as e:
        raise KeypairStoreError(path, str(e)) from e

# =============================================================================
#
def LoadKeypair(path: str = DEFAULT_KEYPAIR_PATH) -> Keypair:
    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        raise KeypairStoreError(path, str(e)) from e

    try:
        secret = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptKeypairFileError(path, f"not a JSON document ({e})") from e

    if not isinstance(secret, list):
        raise CorruptKeypairFileError(path, "expected a JSON array of integers")
    if len(secret) != KEYPAIR_LENGTH:
        raise CorruptKeypairFileError(path, f"expected {KEYPAIR_LENGTH} bytes, got {len(secret)}")
    # `bool` is an `int` subclass, `true` is not a byte.
    if not all(type(b) is int and 0 <= b <= 255 for b in secret):
        raise CorruptKeypairFileError(path, "every item must be an integer in 0..255")

    try:
        keypair: Keypair = Keypair.from_bytes(bytes(secret))
    except ValueError as e:
        raise CorruptKeypairFileError(path, f"invalid secret key ({e})") from e

    if Keypair.from_seed(bytes(secret[:32])).pubkey() != keypair.pubkey():
        raise CorruptKeypairFileError(path, "public key does not match the secret key")
    return keypair

# =============================================================================
# Not safe against concurrent runs sharing the same file: there is no locking.
#
def LoadOrCreateKeypair(path: str = DEFAULT_KEYPAIR_PATH) -> Keypair:
    """
    Loads the keypair stored at `path`, or generates and persists a new one
    when nothing exists there yet. An existing but unreadable or corrupt file
    raises and is left untouched.
    """
    if os.path.exists(path):
        keypair: Keypair = LoadKeypair(path)
        logging.debug(f"Loaded keypair {keypair.pubkey()} from {path}")
        return keypair

    keypair: Keypair = Keypair()
    SaveKeypair(keypair, path)
    logging.info(f"Generated new keypair {keypair.pubkey()}, saved to {path}")
    return keypair

# =============================================================================
#
