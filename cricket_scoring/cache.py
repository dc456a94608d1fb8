# cricket_scoring/cache.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple

# Simple in-memory TTL cache for derived snapshots (sufficient for single-instance deploys)
# key -> (expires_at_epoch, value)
_cache: Dict[str, Tuple[float, Any]] = {}


def make_key(*parts: object) -> str:
    """
    Namespaced cache keys, e.g.
      make_key("scorecard", "m1") -> "scorecard:m1"
    """
    return ":".join([str(p).strip() for p in parts if str(p).strip()])


def get(key: str) -> Optional[Any]:
    item = _cache.get(key)
    if not item:
        return None

    expires_at, value = item
    if time.time() > expires_at:
        _cache.pop(key, None)
        return None

    return value


def set(key: str, value: Any, ttl_seconds: int = 30) -> None:
    if ttl_seconds <= 0:
        # Do not cache if TTL is invalid
        return
    _cache[key] = (time.time() + ttl_seconds, value)


def clear() -> None:
    _cache.clear()
