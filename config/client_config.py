"""config/client_config.py

Configuration for the token / pool info client.

Sources, later wins:
- dataclass defaults
- optional YAML file (flat mapping of ClientConfig fields)
- environment variables (SOLANA_RPC_URL, SOLANA_BACKUP_RPC_URLS,
  SOLANA_COMMITMENT, TOKEN_LIST_URL, RPC_RATE_LIMIT, RPC_RATE_WINDOW_SEC)

Validation is manual, no Pydantic.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from ingestion.rpc.client import (
    DEFAULT_BACKUP_RPC_URLS,
    DEFAULT_RPC_URL,
    DEFAULT_TIMEOUT_SEC,
    DEFAULT_TOKEN_LIST_URL,
)

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    # Transport
    rpc_url: str = DEFAULT_RPC_URL
    backup_rpc_urls: Tuple[str, ...] = DEFAULT_BACKUP_RPC_URLS
    commitment: str = "confirmed"
    request_timeout_sec: float = DEFAULT_TIMEOUT_SEC

    # Rate limiting (shared by every outbound request)
    rate_limit_requests: int = 10
    rate_limit_window_sec: float = 1.0

    # Cache TTLs in seconds
    token_info_cache_ttl: float = 300
    metadata_cache_ttl: float = 600
    pool_info_cache_ttl: float = 300
    token_list_cache_ttl: float = 3600

    token_list_url: str = DEFAULT_TOKEN_LIST_URL
    output_dir: str = "."

    def __post_init__(self):
        self._validate_url("rpc_url", self.rpc_url)
        for url in self.backup_rpc_urls:
            self._validate_url("backup_rpc_urls", url)
        self._validate_url("token_list_url", self.token_list_url)

        if self.commitment not in COMMITMENT_LEVELS:
            raise ConfigError(
                f"commitment must be one of {'|'.join(COMMITMENT_LEVELS)}, got: {self.commitment}"
            )

        self._validate_range("request_timeout_sec", self.request_timeout_sec, 1, 600)
        self._validate_range("rate_limit_requests", self.rate_limit_requests, 1, None)
        if int(self.rate_limit_requests) != self.rate_limit_requests:
            raise ConfigError(f"rate_limit_requests must be an integer, got {self.rate_limit_requests}")
        self._validate_range("rate_limit_window_sec", self.rate_limit_window_sec, 0.001, None)

        self._validate_range("token_info_cache_ttl", self.token_info_cache_ttl, 0, None)
        self._validate_range("metadata_cache_ttl", self.metadata_cache_ttl, 0, None)
        self._validate_range("pool_info_cache_ttl", self.pool_info_cache_ttl, 0, None)
        self._validate_range("token_list_cache_ttl", self.token_list_cache_ttl, 0, None)

        if not isinstance(self.output_dir, str) or not self.output_dir:
            raise ConfigError("output_dir must be a non-empty string")

    def _validate_url(self, name: str, value: Any) -> None:
        if not isinstance(value, str) or not value.startswith(("http://", "https://")):
            raise ConfigError(f"{name} must be an http(s) URL, got {value!r}")

    def _validate_range(self, name: str, value: Any, min_val: float, max_val: Optional[float] = None) -> None:
        if isinstance(value, bool):
            raise ConfigError(f"{name} must be numeric, got {value}")
        try:
            val = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be numeric, got {value}")

        if val < min_val:
            raise ConfigError(f"{name} {val} is below minimum {min_val}")
        if max_val is not None and val > max_val:
            raise ConfigError(f"{name} {val} is above maximum {max_val}")


_FIELDS = {f.name for f in dataclasses.fields(ClientConfig)}


def _split_urls(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(u.strip() for u in value.split(",") if u.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(u).strip() for u in value)
    raise ConfigError(f"backup_rpc_urls must be a list or comma-separated string, got {value!r}")


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if env.get("SOLANA_RPC_URL"):
        out["rpc_url"] = env["SOLANA_RPC_URL"]
    if env.get("SOLANA_BACKUP_RPC_URLS"):
        out["backup_rpc_urls"] = env["SOLANA_BACKUP_RPC_URLS"]
    if env.get("SOLANA_COMMITMENT"):
        out["commitment"] = env["SOLANA_COMMITMENT"]
    if env.get("TOKEN_LIST_URL"):
        out["token_list_url"] = env["TOKEN_LIST_URL"]
    try:
        if env.get("RPC_RATE_LIMIT"):
            out["rate_limit_requests"] = int(env["RPC_RATE_LIMIT"])
        if env.get("RPC_RATE_WINDOW_SEC"):
            out["rate_limit_window_sec"] = float(env["RPC_RATE_WINDOW_SEC"])
    except ValueError as e:
        raise ConfigError(f"Invalid rate limit environment override: {e}") from e
    return out


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must be a YAML mapping (dict at top-level)")

    unknown = sorted(set(raw) - _FIELDS)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path.name}: {', '.join(map(str, unknown))}")
    return raw


def load_client_config(
    path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Build ClientConfig from defaults, an optional YAML file and the environment."""
    values: Dict[str, Any] = {}
    if path is not None:
        values.update(_read_yaml(Path(path)))
    values.update(_env_overrides(os.environ if env is None else env))

    if "backup_rpc_urls" in values:
        values["backup_rpc_urls"] = _split_urls(values["backup_rpc_urls"])

    return ClientConfig(**values)
