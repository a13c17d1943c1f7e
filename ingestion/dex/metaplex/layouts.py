"""
ingestion/dex/metaplex/layouts.py

Metaplex token-metadata account layout and metadata PDA derivation.

Account layout (little-endian, only the leading fields are read):
    u8      key (account type discriminator)
    [32]    update_authority
    [32]    mint
    u32 + bytes   name
    u32 + bytes   symbol
    u32 + bytes   uri
    ...     seller fee, creators, etc. (ignored)
"""
import logging
import struct
from typing import Callable, Sequence, Tuple

from ingestion.address import PUBKEY_LENGTH, find_program_address, string_to_pubkey_bytes
from ingestion.errors import DecodeError
from ingestion.models import TokenMetadata

logger = logging.getLogger(__name__)

# Metaplex Token Metadata program
METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
METADATA_SEED = b"metadata"

# key + update_authority + mint
HEADER_LENGTH = 1 + PUBKEY_LENGTH + PUBKEY_LENGTH
LENGTH_PREFIX = struct.Struct("<I")

DECODE_FAILED_METADATA = TokenMetadata(
    name="Unknown Token",
    symbol="UNKNOWN",
    uri="",
    description="Metadata decoding failed",
)


def _clean(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").replace("\x00", "").strip()


def _read_string(data: bytes, offset: int, field: str) -> Tuple[str, int]:
    """Read one u32-length-prefixed string; bounds-checked against ``data``."""
    if offset + LENGTH_PREFIX.size > len(data):
        raise DecodeError(f"Buffer ends before {field} length at offset {offset}")
    (length,) = LENGTH_PREFIX.unpack_from(data, offset)
    offset += LENGTH_PREFIX.size
    if offset + length > len(data):
        raise DecodeError(
            f"Invalid {field} length {length} at offset {offset} (buffer is {len(data)} bytes)"
        )
    return _clean(data[offset:offset + length]), offset + length


def parse_metadata(data: bytes) -> TokenMetadata:
    """
    Strict decode of a metadata account.

    Raises:
        DecodeError: If any length prefix points past the end of the buffer
    """
    data = bytes(data)
    if len(data) < HEADER_LENGTH:
        raise DecodeError(
            f"Data too short: got {len(data)} bytes, need at least {HEADER_LENGTH}"
        )

    offset = HEADER_LENGTH
    name, offset = _read_string(data, offset, "name")
    symbol, offset = _read_string(data, offset, "symbol")
    uri, offset = _read_string(data, offset, "uri")

    # The on-chain record has no description; the uri doubles as one.
    return TokenMetadata(name=name, symbol=symbol, uri=uri, description=uri)


def decode_metadata(data: bytes) -> TokenMetadata:
    """
    Decode a metadata account, falling back to a placeholder.

    Never raises: a structurally invalid buffer yields
    ``DECODE_FAILED_METADATA``.
    """
    try:
        return parse_metadata(data)
    except DecodeError as e:
        logger.warning(f"[metaplex] Error decoding metadata: {e}")
        return DECODE_FAILED_METADATA


def metadata_seeds(mint: str) -> Sequence[bytes]:
    return [
        METADATA_SEED,
        string_to_pubkey_bytes(METADATA_PROGRAM_ID),
        string_to_pubkey_bytes(mint),
    ]


def derive_metadata_address(
    mint: str,
    derive: Callable[[Sequence[bytes], str], Tuple[str, int]] = find_program_address,
) -> Tuple[str, int]:
    """
    Locate the metadata account for ``mint``.

    Args:
        mint: Base58 mint address
        derive: Program-address primitive (seeds, program_id) -> (address, bump)

    Returns:
        (metadata account address, bump)
    """
    return derive(metadata_seeds(mint), METADATA_PROGRAM_ID)
