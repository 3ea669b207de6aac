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
# module: helpers
#
# =============================================================================
# 
from   solana.rpc.api        import Client
from   solana.rpc.commitment import Commitment
from   solders.account       import Account
from   solders.keypair       import Keypair
from   solders.pubkey        import Pubkey
from   typing                import List, Any, Union
from   decimal               import Decimal
from   pybip39               import Mnemonic, Seed
import logging
import json
import os

# ================================================================================
#
LAMPORTS_PER_SOL:          int    = 1_000_000_000
DEFAULT_DECIMALS:          int    = 9
METADATA_PROGRAM_ID:       Pubkey = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s" )
SYSTEM_PROGRAM_ID:         Pubkey = Pubkey.from_string("11111111111111111111111111111111"            )
SYSVAR_RENT_PUBKEY:        Pubkey = Pubkey.from_string("SysvarRent111111111111111111111111111111111" )
DEVNET_RPC_ENDPOINT:       str    = "https://api.devnet.solana.com"

# ================================================================================
# Create path if it doesn't exist
#
def EnsurePathExists(path: str):
    if path == "":
        return
    if not os.path.exists(path):
        os.makedirs(path, exist_ok = True)

# ================================================================================
#
def SetupLogging(fileName: str = "log.log",
                 format:   str = "%(name)s: %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s | %(process)d >>> %(message)s",
                 dateFmt:  str = "%Y-%m-%dT%H:%M:%SZ",
                 logLevel: int = logging.INFO):
    EnsurePathExists(os.path.dirname(fileName))
    logging.basicConfig(filename=fileName, filemode="a", format=format, datefmt=dateFmt, level=logLevel)
    logging.getLogger().addHandler(logging.StreamHandler())

# ================================================================================
#
def NestedAttributeExists(target: object, attributePath: str) -> bool:
    parts = attributePath.split(".")
    while parts:
       next, parts = parts[0], parts[1:]
       target = getattr(target, next, None)
       if target is None:
           return False
    return True

# ================================================================================
#
def ExplorerLink(kind: str, value: Any, cluster: str = "devnet") -> str:
    return f"https://explorer.solana.com/{kind}/{value}?cluster={cluster}"

# ================================================================================
# Either Pubkey string or Pubkey or anything that can be a Pubkey
#
SapymintPubkey = Union[str, bytes, Keypair, Pubkey]
#
def MakePubkey(pubkey: SapymintPubkey) -> Pubkey:
    if pubkey is None:
        return None

    if isinstance(pubkey, Pubkey):
        return pubkey
    if isinstance(pubkey, Keypair):
        return pubkey.pubkey()
    elif isinstance(pubkey, bytes):
        return Pubkey.from_bytes(pubkey)
    elif isinstance(pubkey, str):
        try:
            return Pubkey.from_string(pubkey)
        except ValueError:
            return Pubkey.from_json(pubkey)
    return None

# ================================================================================
# Either Keypair JSON file path or Keypair or anything that can be a Keypair
#
SapymintKeypair = Union[str, bytes, Keypair]
#
def MakeKeypair(keypair: SapymintKeypair) -> Keypair:
    if keypair is None:
        return None

    if isinstance(keypair, Keypair):
        return keypair
    elif isinstance(keypair, bytes):
        return Keypair.from_bytes(keypair)
    elif isinstance(keypair, str):
        # First try to load file
        if os.path.isfile(keypair):
            with open(keypair) as f:
                return Keypair.from_bytes(json.load(f))
        # Second - maybe it is a mnemonic?
        try:
            mnemonic = Mnemonic.from_phrase(keypair)
            seed     = Seed(mnemonic=mnemonic, password="")
            return Keypair.from_seed_and_derivation_path(seed=bytes(seed), dpath="m/44'/501'/0'/0'")
        except Exception:
            pass
        # Third - maybe it is already a json?
        try:
            return Keypair.from_json(keypair)
        except Exception:
            pass
    return None

# ================================================================================
# Raw token amounts are integers in base units: 1 token == 10**decimals.
#
def ToBaseUnits(amount: Union[int, str, Decimal], decimals: int) -> int:
    scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    if not scaled.is_finite():
        raise ValueError(f"ToBaseUnits(): {amount} is not a finite amount!")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"ToBaseUnits(): {amount} has more than {decimals} decimal places!")
    if scaled < 0:
        raise ValueError(f"ToBaseUnits(): negative amount {amount}!")
    return int(scaled)

def FromBaseUnits(amount: int, decimals: int) -> Decimal:
    return Decimal(amount) / (Decimal(10) ** decimals)

# ================================================================================
#
def FetchAccounts(connection:    Client,
                  pubkeys:       List[SapymintPubkey],
                  requiredOwner: SapymintPubkey = None,
                  commitment:    Commitment     = None) -> List[Account]:
    results = []
    for pubkey in pubkeys:
        entry: Account = connection.get_account_info(pubkey=MakePubkey(pubkey), commitment=commitment).value
        if requiredOwner is not None and entry is not None and entry.owner != MakePubkey(requiredOwner):
            raise ValueError("Account does not belong to this program!")
        results.append(entry)
    return results

# ================================================================================
#
def FetchAccount(connection:    Client,
                 pubkey:        SapymintPubkey,
                 requiredOwner: SapymintPubkey = None,
                 commitment:    Commitment     = None) -> Account:
    return FetchAccounts(connection    = connection,
                         pubkeys       = [pubkey],
                         requiredOwner = requiredOwner,
                         commitment    = commitment)[0]

# ================================================================================
#
