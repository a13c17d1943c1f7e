"""
ingestion/dex/spl_token.py

SPL Token mint account layout (shared by Token and Token-2022 for the
first 82 bytes).
"""
import struct
from dataclasses import dataclass
from typing import Optional

from ingestion.address import pubkey_to_string, string_to_pubkey_bytes
from ingestion.errors import DecodeError

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
TOKEN_PROGRAM_IDS = frozenset({TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID})

# u32 option + pubkey, u64 supply, u8 decimals, u8 initialized, u32 option + pubkey
MINT_LAYOUT = struct.Struct("<I32sQBBI32s")


@dataclass(frozen=True)
class MintInfo:
    """Decoded mint account."""
    decimals: int
    supply: int
    is_initialized: bool
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None


def decode_mint(data: bytes) -> MintInfo:
    """
    Decode an SPL mint account.

    Raises:
        DecodeError: If data is too short or the account is uninitialized
    """
    data = bytes(data)
    if len(data) < MINT_LAYOUT.size:
        raise DecodeError(
            f"Data too short for mint: got {len(data)} bytes, need {MINT_LAYOUT.size}"
        )

    (
        mint_authority_option,
        mint_authority,
        supply,
        decimals,
        is_initialized,
        freeze_authority_option,
        freeze_authority,
    ) = MINT_LAYOUT.unpack_from(data, 0)

    if not is_initialized:
        raise DecodeError("Mint account is not initialized")

    return MintInfo(
        decimals=decimals,
        supply=supply,
        is_initialized=bool(is_initialized),
        mint_authority=pubkey_to_string(mint_authority) if mint_authority_option else None,
        freeze_authority=pubkey_to_string(freeze_authority) if freeze_authority_option else None,
    )


def encode_mint(mint: MintInfo) -> bytes:
    """Inverse of :func:`decode_mint` (fixtures, tests)."""
    zero = bytes(32)
    return MINT_LAYOUT.pack(
        1 if mint.mint_authority else 0,
        string_to_pubkey_bytes(mint.mint_authority) if mint.mint_authority else zero,
        mint.supply,
        mint.decimals,
        1 if mint.is_initialized else 0,
        1 if mint.freeze_authority else 0,
        string_to_pubkey_bytes(mint.freeze_authority) if mint.freeze_authority else zero,
    )
