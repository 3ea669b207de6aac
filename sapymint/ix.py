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
# module: ix
#
# =============================================================================
# 
from   solders.instruction    import Instruction
from   solders.pubkey         import Pubkey
from   solders.system_program import create_account, CreateAccountParams
from   solana.rpc.api         import Client
from   spl.token.constants    import TOKEN_PROGRAM_ID
from   spl.token._layouts     import MINT_LAYOUT  # type: ignore
from   spl.token.instructions import get_associated_token_address, create_associated_token_account, \
                                     initialize_mint, InitializeMintParams, mint_to, MintToParams
from   typing                 import List, NamedTuple
from  .helpers                import MakePubkey, SapymintPubkey

# ===============================================================================
#
MINT_ACCOUNT_SIZE: int = MINT_LAYOUT.sizeof()

# ===============================================================================
#
class AtaInstruction(NamedTuple):
    pubkey: Pubkey
    ix:     Instruction = None

def GetAta(tokenMint: SapymintPubkey, owner: SapymintPubkey) -> Pubkey:
    return get_associated_token_address(owner=MakePubkey(owner), mint=MakePubkey(tokenMint))

def CreateAtaIx(tokenMint: SapymintPubkey, owner: SapymintPubkey, payer: SapymintPubkey) -> Instruction:
    return create_associated_token_account(payer=MakePubkey(payer), owner=MakePubkey(owner), mint=MakePubkey(tokenMint))

# ===============================================================================
# The ATA program refuses to create an account that already exists, so look first.
#
def GetOrCreateAtaIx(connection: Client,
                     tokenMint:  SapymintPubkey,
                     owner:      SapymintPubkey,
                     payer:      SapymintPubkey = None) -> AtaInstruction:

    ataAddress = GetAta(owner=owner, tokenMint=tokenMint)
    account    = connection.get_account_info(ataAddress)
    return AtaInstruction(pubkey = ataAddress,
                          ix     = None if account.value is not None else CreateAtaIx(payer=payer if payer else owner, owner=owner, tokenMint=tokenMint))

# ===============================================================================
# Allocates the mint account (rent exempt) and initializes it in one go,
# `mint` has to sign the resulting transaction.
#
def CreateMintIx(connection:      Client,
                 payer:           SapymintPubkey,
                 mint:            SapymintPubkey,
                 mintAuthority:   SapymintPubkey,
                 freezeAuthority: SapymintPubkey = None,
                 decimals:        int            = 9,
                 programId:       Pubkey         = TOKEN_PROGRAM_ID) -> List[Instruction]:
    lamports: int = connection.get_minimum_balance_for_rent_exemption(MINT_ACCOUNT_SIZE).value
    return [
        create_account(CreateAccountParams(from_pubkey = MakePubkey(payer),
                                           to_pubkey   = MakePubkey(mint),
                                           lamports    = lamports,
                                           space       = MINT_ACCOUNT_SIZE,
                                           owner       = programId)),
        initialize_mint(InitializeMintParams(decimals         = decimals,
                                             program_id       = programId,
                                             mint             = MakePubkey(mint),
                                             mint_authority   = MakePubkey(mintAuthority),
                                             freeze_authority = MakePubkey(freezeAuthority))),
    ]

# ===============================================================================
# `amountLamports` is in base units already, e.g. 1 token with 9 decimals == 1_000_000_000.
#
def MintToIx(tokenMint:      SapymintPubkey,
             destination:    SapymintPubkey,
             mintAuthority:  SapymintPubkey,
             amountLamports: int,
             programId:      Pubkey = TOKEN_PROGRAM_ID) -> Instruction:
    return mint_to(MintToParams(program_id     = programId,
                                mint           = MakePubkey(tokenMint),
                                dest           = MakePubkey(destination),
                                mint_authority = MakePubkey(mintAuthority),
                                amount         = amountLamports))

# ===============================================================================
#
