"""
ingestion/storage.py

JSON persistence for resolved TokenInfo / PoolInfo records.

Files are written atomically (temp file + rename). Non-finite floats (a
price ratio over an empty vault) are written as null so the output stays
strict JSON.
"""
import json
import logging
import math
import os
import tempfile
from typing import Any, Optional

from ingestion.models import PoolInfo, TokenInfo

logger = logging.getLogger(__name__)


def default_token_path(address: str, output_dir: str = ".") -> str:
    return os.path.join(output_dir, f"token_info_{address}.json")


def default_pool_path(address: str, output_dir: str = ".") -> str:
    return os.path.join(output_dir, f"pool_info_{address}.json")


def _strict(obj: Any) -> Any:
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _strict(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_strict(v) for v in obj]
    return obj


def write_json_atomic(path: str, obj: Any) -> str:
    """Write ``obj`` as indented JSON to ``path`` atomically; returns ``path``."""
    dir_path = os.path.dirname(path)
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)

    tmp_fd, tmp_path = tempfile.mkstemp(
        prefix=".solana_info_",
        suffix=".tmp",
        dir=dir_path or ".",
    )
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(_strict(obj), f, indent=2, ensure_ascii=False, allow_nan=False)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    return path


def save_token_info(
    address: str,
    info: TokenInfo,
    output: Optional[str] = None,
    output_dir: str = ".",
) -> str:
    """Persist ``info``; defaults to ``token_info_<address>.json``."""
    path = output or default_token_path(address, output_dir)
    write_json_atomic(path, info.to_dict())
    logger.info(f"[tokens] Token info saved to {path}")
    return path


def save_pool_info(
    address: str,
    info: PoolInfo,
    output: Optional[str] = None,
    output_dir: str = ".",
) -> str:
    """Persist ``info``; defaults to ``pool_info_<address>.json``."""
    path = output or default_pool_path(address, output_dir)
    write_json_atomic(path, info.to_dict())
    logger.info(f"[raydium] Pool info saved to {path}")
    return path


def load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
