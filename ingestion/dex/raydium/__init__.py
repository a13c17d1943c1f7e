"""
ingestion/dex/raydium package

Raydium AMM v4 pool-state decoding and schema document.
"""
from .abi import RAYDIUM_V4_POOL_ABI, contract_abi_json
from .decoder import RaydiumDecoder
from .layouts import (
    POOL_STATE_LAYOUT,
    RAYDIUM_V4_PROGRAM_ID,
    PoolState,
    decode_pool_state,
    encode_pool_state,
)

__all__ = [
    'RAYDIUM_V4_POOL_ABI',
    'contract_abi_json',
    'RaydiumDecoder',
    'POOL_STATE_LAYOUT',
    'RAYDIUM_V4_PROGRAM_ID',
    'PoolState',
    'decode_pool_state',
    'encode_pool_state',
]
