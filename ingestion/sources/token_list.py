"""
ingestion/sources/token_list.py

External token registry adapter.

Downloads the token list once per TTL, indexes it by mint address and
answers point lookups. Any download failure is treated as "not listed",
and the failure itself is remembered for a short while so an outage costs
one download attempt per retry window rather than one per lookup.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from ingestion.errors import TransportError
from ingestion.rpc.cache import TimedCache

logger = logging.getLogger(__name__)

TOKEN_LIST_TTL = 3600
FAILED_LIST_TTL = 30
_INDEX_KEY = "index"


class TokenListSource:
    """
    Lookup of listed tokens by mint address.

    Args:
        rpc: Transport exposing ``fetch_token_list()``
        ttl: How long a downloaded list is reused (seconds)
        cache: Index cache (built from ``ttl`` if None)
        failure_ttl: How long a failed download is remembered (seconds)
        clock: Time source for the failure window (tests)
    """

    def __init__(
        self,
        rpc: Any,
        ttl: float = TOKEN_LIST_TTL,
        cache: Optional[TimedCache] = None,
        failure_ttl: float = FAILED_LIST_TTL,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._rpc = rpc
        if cache is None:
            cache = TimedCache(ttl=ttl, name="token_list")
        self._cache: TimedCache[Dict[str, Dict[str, Any]]] = cache
        self._failed: TimedCache[Dict[str, Dict[str, Any]]] = TimedCache(
            ttl=failure_ttl, clock=clock, name="token_list_failed"
        )
        self._lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _cached_index(self) -> Optional[Dict[str, Dict[str, Any]]]:
        index = self._cache.get(_INDEX_KEY)
        if index is None:
            # Empty index while a recent download failure is remembered.
            index = self._failed.get(_INDEX_KEY)
        return index

    async def _load_index(self) -> Dict[str, Dict[str, Any]]:
        index = self._cached_index()
        if index is not None:
            return index

        async with self._get_lock():
            # Another task may have filled it while we waited.
            index = self._cached_index()
            if index is not None:
                return index

            try:
                tokens = await self._rpc.fetch_token_list()
            except TransportError as e:
                logger.warning(
                    f"[tokens] Token list unavailable, retrying after {self._failed.ttl}s: {e}"
                )
                self._failed.set(_INDEX_KEY, {})
                return {}

            index = {}
            for entry in tokens:
                if isinstance(entry, dict) and entry.get("address"):
                    # First occurrence wins, matching a linear find().
                    index.setdefault(entry["address"], entry)
            logger.info(f"[tokens] Loaded token list with {len(index)} entries")
            self._cache.set(_INDEX_KEY, index)
            return index

    async def lookup(self, address: str) -> Optional[Dict[str, Any]]:
        """Listed entry for ``address`` or None."""
        index = await self._load_index()
        return index.get(address)
