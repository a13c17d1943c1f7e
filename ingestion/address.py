"""
ingestion/address.py

Base58 public-key helpers: validation, encoding and program-address
derivation. Pure, no network access.
"""
from typing import Sequence, Tuple

import base58
from solders.pubkey import Pubkey

# Solana pubkey (32 bytes, base58 encoded)
PUBKEY_LENGTH = 32


def is_valid_address(address: str) -> bool:
    """True iff ``address`` base58-decodes to exactly 32 bytes."""
    if not isinstance(address, str):
        return False
    address = address.strip()
    if not address:
        return False
    try:
        raw = base58.b58decode(address)
    except ValueError:
        return False
    return len(raw) == PUBKEY_LENGTH


def validate_token_address(address: str) -> bool:
    return is_valid_address(address)


def validate_pool_address(address: str) -> bool:
    return is_valid_address(address)


def pubkey_to_string(data: bytes) -> str:
    """Convert 32-byte pubkey to base58 string."""
    return base58.b58encode(data).decode("utf-8")


def string_to_pubkey_bytes(address: str) -> bytes:
    """Inverse of :func:`pubkey_to_string`; raises ValueError on bad input."""
    raw = base58.b58decode(address.strip())
    if len(raw) != PUBKEY_LENGTH:
        raise ValueError(f"Expected {PUBKEY_LENGTH} bytes, got {len(raw)}")
    return raw


def find_program_address(seeds: Sequence[bytes], program_id: str) -> Tuple[str, int]:
    """
    Derive a program address from ``seeds`` under ``program_id``.

    Walks the bump seed down from 255 until the hashed candidate is off the
    ed25519 curve (solders implements the search).

    Returns:
        (base58 address, bump)
    """
    pda, bump = Pubkey.find_program_address(list(seeds), Pubkey.from_string(program_id))
    return str(pda), bump
