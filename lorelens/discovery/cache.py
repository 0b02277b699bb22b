"""
TTL cache for resolved cover-image URLs.

Keys are derived from the identifying fields of a content item so the same
title generated in a later search reuses the earlier lookup.
"""
from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any

_cache: dict[str, dict[str, Any]] = {}
_lock = threading.Lock()
_hits: int = 0
_misses: int = 0
_DEFAULT_TTL = 6 * 60 * 60  # 6 hours


def _make_key(key_dict: dict) -> str:
    normalized = json.dumps(key_dict, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


def cache_get(key_dict: dict, ttl: float = _DEFAULT_TTL) -> Any | None:
    global _hits, _misses
    key = _make_key(key_dict)
    with _lock:
        entry = _cache.get(key)
        if entry and time.time() - entry["created_at"] < ttl:
            _hits += 1
            return entry["value"]
        if entry:
            del _cache[key]
        _misses += 1
    return None


def cache_set(key_dict: dict, value: Any) -> None:
    key = _make_key(key_dict)
    with _lock:
        _cache[key] = {"value": value, "created_at": time.time()}


def get_cache_stats() -> dict:
    with _lock:
        total = _hits + _misses
        return {
            "size": len(_cache),
            "hits": _hits,
            "misses": _misses,
            "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
        }


def clear_cache() -> None:
    global _hits, _misses
    with _lock:
        _cache.clear()
        _hits = 0
        _misses = 0
