"""
ingestion/services.py

Wires one shared SolanaRpcClient (with its RateLimiter) into the token and
pool resolvers. The caller owns the returned Services and must close it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from config.client_config import ClientConfig
from ingestion.rpc.cache import TimedCache
from ingestion.rpc.client import SolanaRpcClient
from ingestion.rpc.rate_limiter import RateLimiter
from ingestion.sources.raydium_pool import PoolResolver
from ingestion.sources.token_info import TokenResolver
from ingestion.sources.token_list import TokenListSource

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: ClientConfig
    rpc: SolanaRpcClient
    tokens: TokenResolver
    pools: PoolResolver

    async def close(self) -> None:
        await self.rpc.close()

    async def __aenter__(self) -> "Services":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def build_services(config: ClientConfig, rpc: Optional[SolanaRpcClient] = None) -> Services:
    """
    Construct the resolver graph for ``config``.

    Args:
        config: Validated client configuration
        rpc: Pre-built transport (tests); built from ``config`` if None
    """
    if rpc is None:
        limiter = RateLimiter(
            max_requests=int(config.rate_limit_requests),
            window_sec=config.rate_limit_window_sec,
        )
        rpc = SolanaRpcClient(
            rpc_url=config.rpc_url,
            backup_urls=config.backup_rpc_urls,
            commitment=config.commitment,
            timeout=config.request_timeout_sec,
            rate_limiter=limiter,
            token_list_url=config.token_list_url,
        )

    tokens = TokenResolver(
        rpc,
        token_list=TokenListSource(rpc, ttl=config.token_list_cache_ttl),
        info_cache=TimedCache(ttl=config.token_info_cache_ttl, name="token_info"),
        metadata_cache=TimedCache(ttl=config.metadata_cache_ttl, name="metadata"),
    )
    pools = PoolResolver(
        rpc,
        tokens,
        pool_cache=TimedCache(ttl=config.pool_info_cache_ttl, name="pool_info"),
        pair_cache=TimedCache(ttl=config.pool_info_cache_ttl, name="token_pair"),
    )
    logger.debug(f"[rpc] Services built for {config.rpc_url}")
    return Services(config=config, rpc=rpc, tokens=tokens, pools=pools)
