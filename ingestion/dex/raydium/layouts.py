"""
ingestion/dex/raydium/layouts.py

Raydium AMM v4 pool-state account layout.

The resolver only consumes fields up to ``lp_supply``; the remaining
reserve / APY / pending counters are decoded for completeness.
"""
import struct
from dataclasses import dataclass, fields

from ingestion.address import pubkey_to_string, string_to_pubkey_bytes
from ingestion.errors import DecodeError

# Raydium liquidity pool v4 program
RAYDIUM_V4_PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"

# Little-endian, packed (no alignment padding):
#   3 x u8      version, is_initialized, nonce
#   7 x pubkey  amm_id, base/quote/lp mints, base/quote vaults, authority
#   8 x u64     open_time, lp_supply, reserves, targets, deposit limits
#   2 x u8      state, reset_flag
#   7 x u64     APY bounds, pending deposits/withdraws, pool_open_time
# 349 bytes total.
POOL_STATE_LAYOUT = struct.Struct(
    "<3B" + "32s" * 7 + "8Q" + "2B" + "7Q"
)

PUBKEY_FIELDS = (
    "amm_id",
    "base_token_mint",
    "quote_token_mint",
    "lp_token_mint",
    "base_vault",
    "quote_vault",
    "authority",
)


@dataclass(frozen=True)
class PoolState:
    """Decoded Raydium AMM v4 pool state."""
    version: int                    # u8
    is_initialized: int             # u8
    nonce: int                      # u8: authority bump

    amm_id: str                     # Pubkey
    base_token_mint: str            # Pubkey
    quote_token_mint: str           # Pubkey
    lp_token_mint: str              # Pubkey
    base_vault: str                 # Pubkey
    quote_vault: str                # Pubkey
    authority: str                  # Pubkey

    open_time: int                  # u64
    lp_supply: int                  # u64
    base_reserve: int               # u64
    quote_reserve: int              # u64
    target_base_reserve: int        # u64
    target_quote_reserve: int       # u64
    base_deposit_limit: int         # u64
    quote_deposit_limit: int        # u64

    state: int                      # u8
    reset_flag: int                 # u8

    min_base_apy: int               # u64
    max_base_apy: int               # u64
    min_quote_apy: int              # u64
    max_quote_apy: int              # u64
    total_deposits_pending: int     # u64
    total_withdraws_pending: int    # u64
    pool_open_time: int             # u64


def decode_pool_state(data: bytes) -> PoolState:
    """
    Decode Raydium AMM v4 pool state from raw bytes.

    Trailing bytes past the layout are ignored.

    Raises:
        DecodeError: If data is shorter than the layout
    """
    data = bytes(data)
    if len(data) < POOL_STATE_LAYOUT.size:
        raise DecodeError(
            f"Data too short: got {len(data)} bytes, need at least {POOL_STATE_LAYOUT.size}"
        )

    values = list(POOL_STATE_LAYOUT.unpack_from(data, 0))
    for i in range(3, 3 + len(PUBKEY_FIELDS)):
        values[i] = pubkey_to_string(values[i])

    return PoolState(*values)


def encode_pool_state(pool: PoolState) -> bytes:
    """Serialize ``pool`` back into the on-chain layout (fixtures, tests)."""
    values = []
    for f in fields(pool):
        value = getattr(pool, f.name)
        if f.name in PUBKEY_FIELDS:
            value = string_to_pubkey_bytes(value)
        values.append(value)
    try:
        return POOL_STATE_LAYOUT.pack(*values)
    except struct.error as e:
        raise DecodeError(f"Cannot encode pool state: {e}") from e

