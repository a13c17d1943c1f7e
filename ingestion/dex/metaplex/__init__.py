"""
ingestion/dex/metaplex package

Metaplex token-metadata decoding.
"""
from .layouts import (
    DECODE_FAILED_METADATA,
    METADATA_PROGRAM_ID,
    decode_metadata,
    derive_metadata_address,
    parse_metadata,
)

__all__ = [
    'DECODE_FAILED_METADATA',
    'METADATA_PROGRAM_ID',
    'decode_metadata',
    'derive_metadata_address',
    'parse_metadata',
]
