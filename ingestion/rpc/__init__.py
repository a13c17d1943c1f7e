"""
ingestion/rpc package

JSON-RPC transport, rate limiting, caching and endpoint failover.
"""
from .client import AccountInfo, SolanaRpcClient, TokenAmount
from .cache import TimedCache
from .rate_limiter import RateLimiter
from .failover import FailoverManager, EndpointConfig

__all__ = [
    'AccountInfo',
    'SolanaRpcClient',
    'TokenAmount',
    'TimedCache',
    'RateLimiter',
    'FailoverManager',
    'EndpointConfig',
]
