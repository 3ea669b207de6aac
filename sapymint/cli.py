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
# module: cli
#
# =============================================================================
# 
from   typing         import List, Optional
from   solana.rpc.api import Client
from  .config         import SapymintConfig
from  .flow           import ProvisionResult, ProvisionToken
from  .helpers        import SetupLogging, ToBaseUnits, ExplorerLink
import argparse
import json
import logging
import sys

# =============================================================================
#
def BuildParser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sapymint", description="Create an SPL token, mint a supply and attach Metaplex metadata.")
    p.add_argument("--config",           help="JSON config file")
    p.add_argument("--rpc",              dest="rpcEndpoint",         help="RPC endpoint URL")
    p.add_argument("--keypair",          dest="keypairPath",         help="payer keypair file, created if missing")
    p.add_argument("--mint-authority",   dest="mintAuthorityPath",   help="mint authority keypair file, created if missing")
    p.add_argument("--freeze-authority", dest="freezeAuthorityPath", help="freeze authority keypair file, created if missing")
    p.add_argument("--decimals",         type=int)
    amount = p.add_mutually_exclusive_group()
    amount.add_argument("--amount",      dest="mintAmount", type=int, help="amount to mint, raw base units")
    amount.add_argument("--ui-amount",   dest="uiAmount",               help="amount to mint, whole tokens")
    p.add_argument("--mint",             dest="mintAddress",         help="reuse an existing mint instead of creating one")
    p.add_argument("--update-metadata",  action="store_true",        help="update existing metadata instead of creating it")
    p.add_argument("--name")
    p.add_argument("--symbol")
    p.add_argument("--uri")
    p.add_argument("--seller-fee-bps",   dest="sellerFeeBasisPoints", type=int)
    p.add_argument("--with-creator",     action="store_true",        help="add payer as the single verified creator")
    p.add_argument("--no-airdrop",       action="store_true",        help="don't request a faucet airdrop")
    p.add_argument("--print-config",     action="store_true",        help="print the effective config and exit")
    p.add_argument("--log-file",         default="log.log")
    p.add_argument("-v", "--verbose",    action="store_true")
    return p

# =============================================================================
#
def ConfigFromArgs(args: argparse.Namespace) -> SapymintConfig:
    obj: dict = SapymintConfig.ReadFile(args.config) if args.config else {}
    # Update starts from an empty descriptor, only fields given explicitly are overrides.
    if args.update_metadata:
        obj["initializeMetadata"] = False
    config: SapymintConfig = SapymintConfig.FromDict(obj)
    config.ApplyEnvironment()

    for name in ("rpcEndpoint", "keypairPath", "mintAuthorityPath", "freezeAuthorityPath", "decimals", "mintAmount", "mintAddress"):
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, value)
    if args.uiAmount is not None:
        config.mintAmount = ToBaseUnits(args.uiAmount, config.decimals)
    for name in ("name", "symbol", "uri", "sellerFeeBasisPoints"):
        value = getattr(args, name)
        if value is not None:
            setattr(config.metadata, name, value)
    if args.with_creator:
        config.withCreator = True
    if args.no_airdrop:
        config.requestAirdrop = False
    return config

# =============================================================================
#
def main(argv: Optional[List[str]] = None, connection: Client = None) -> int:
    args = BuildParser().parse_args(argv)
    SetupLogging(fileName=args.log_file, logLevel=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config: SapymintConfig = ConfigFromArgs(args)
        if args.print_config:
            print(json.dumps(config.Validate().to_json(), indent=2))
            return 0
        result: ProvisionResult = ProvisionToken(config=config, connection=connection)
    except Exception as e:
        logging.error(f"Error: {e}")
        logging.error(e, exc_info=(type(e), e, e.__traceback__))
        return 1

    print(f"Mint Address: {result.mint}")
    print(f"Supply: {result.supply}")
    logging.info(f"Token: {ExplorerLink('address', result.mint)}")
    return 0

# =============================================================================
#
if __name__ == "__main__":
    sys.exit(main())
