"""
ingestion/dex/raydium/decoder.py

Raydium Pool Decoder - ownership check plus layout decode for fetched
pool accounts.
"""
import logging

from ingestion.errors import DecodeError, NotAValidPool

from .layouts import RAYDIUM_V4_PROGRAM_ID, PoolState, decode_pool_state

logger = logging.getLogger(__name__)


class RaydiumDecoder:
    """
    Turns a fetched account into a PoolState.

    The owner is checked before any byte of ``data`` is interpreted, so an
    arbitrary account can never be read as pool state.
    """

    def __init__(self, program_id: str = RAYDIUM_V4_PROGRAM_ID):
        self.program_id = program_id

    def is_pool_account(self, owner: str) -> bool:
        return str(owner) == self.program_id

    def decode_pool(self, address: str, data: bytes, owner: str) -> PoolState:
        """
        Decode pool state from a fetched account.

        Raises:
            NotAValidPool: If ``owner`` is not the AMM program
            DecodeError: If ``data`` does not match the layout
        """
        if not self.is_pool_account(owner):
            raise NotAValidPool(address, str(owner))

        try:
            pool = decode_pool_state(data)
        except DecodeError as e:
            logger.error(f"[raydium] Failed to decode pool {address}: {e}")
            raise
        logger.debug(
            f"[raydium] Decoded pool {address}: "
            f"{pool.base_token_mint[:8]}.../{pool.quote_token_mint[:8]}..."
        )
        return pool
