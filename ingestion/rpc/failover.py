"""
ingestion/rpc/failover.py

FailoverManager - ordered pool of RPC endpoints with an active pointer.

The client reports successes and failures; when a request fails with a
retryable error it asks for backup candidates, tests one with getSlot and calls
``switch_to``. Selection is deterministic (priority, then insertion order).
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Error fragments that justify trying another endpoint
RETRYABLE_MARKERS = (
    "rate limit",
    "http 429",
    "too many requests",
    "forbidden",
    "http 403",
    "unauthorized",
    "http 401",
    "timeout",
    "timed out",
)


@dataclass
class EndpointConfig:
    """Endpoint entry."""
    url: str
    priority: int = 0  # Lower = higher priority
    is_primary: bool = False
    failures: int = 0
    successes: int = 0


def is_retryable_error(error: BaseException) -> bool:
    """True if ``error`` looks like a rate limit / auth / timeout failure."""
    text = f"{type(error).__name__}: {error}".lower()
    return any(marker in text for marker in RETRYABLE_MARKERS)


class FailoverManager:
    """
    Tracks RPC endpoints and which one is currently in use.

    Features:
    - Priority-ordered endpoint list
    - Failure / success counters per endpoint
    - Backup candidate listing that skips the active endpoint
    """

    def __init__(self, primary_url: Optional[str] = None, backup_urls: Optional[List[str]] = None):
        self._endpoints: Dict[str, EndpointConfig] = {}
        self._active_endpoint: Optional[str] = None
        self._last_switch_time: Optional[float] = None
        self._switch_count = 0

        if primary_url:
            self.add_endpoint(primary_url, priority=0, is_primary=True)
        for i, url in enumerate(backup_urls or [], start=1):
            self.add_endpoint(url, priority=i)

    def add_endpoint(self, url: str, priority: int = 0, is_primary: bool = False) -> None:
        if url in self._endpoints:
            return
        self._endpoints[url] = EndpointConfig(url=url, priority=priority, is_primary=is_primary)
        if is_primary or self._active_endpoint is None:
            self._active_endpoint = url
        logger.debug(f"[failover] Added endpoint: {url} (priority={priority}, primary={is_primary})")

    def get_active_endpoint(self) -> Optional[str]:
        return self._active_endpoint

    def backup_candidates(self) -> List[str]:
        """Endpoints other than the active one, best first."""
        ordered = sorted(
            (cfg for cfg in self._endpoints.values() if cfg.url != self._active_endpoint),
            key=lambda cfg: (cfg.priority, cfg.failures),
        )
        return [cfg.url for cfg in ordered]

    def switch_to(self, url: str) -> None:
        if url not in self._endpoints:
            raise KeyError(f"Unknown endpoint: {url}")
        old_url = self._active_endpoint
        self._active_endpoint = url
        self._last_switch_time = time.time()
        self._switch_count += 1
        logger.warning(f"[failover] Switching from {old_url} to {url}")

    def report_failure(self, url: str) -> None:
        cfg = self._endpoints.get(url)
        if cfg is not None:
            cfg.failures += 1

    def report_success(self, url: str) -> None:
        cfg = self._endpoints.get(url)
        if cfg is not None:
            cfg.successes += 1

    def get_status(self) -> Dict[str, Any]:
        return {
            "endpoints": {
                url: {
                    "priority": cfg.priority,
                    "is_primary": cfg.is_primary,
                    "failures": cfg.failures,
                    "successes": cfg.successes,
                }
                for url, cfg in self._endpoints.items()
            },
            "active_endpoint": self._active_endpoint,
            "last_switch": self._last_switch_time,
            "switch_count": self._switch_count,
        }
