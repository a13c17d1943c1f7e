"""
ingestion/dex package

On-chain account layouts (SPL Token, Metaplex metadata, Raydium v4 pools).
"""
from .spl_token import TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID, MintInfo, decode_mint

__all__ = [
    'TOKEN_PROGRAM_ID',
    'TOKEN_2022_PROGRAM_ID',
    'MintInfo',
    'decode_mint',
]
