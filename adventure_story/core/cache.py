# SPDX-License-Identifier: MIT
"""In-process TTL cache shared by the aggregation services."""

import hashlib
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Constants
DEFAULT_TTL = 3600
DEFAULT_MAX_ENTRIES = 1000
GQL_TTL = 300  # 5 min

_MISSING = object()


class TTLCache:
    """Key/value store with per-entry expiry and a bounded entry count.

    When a new key would exceed `max_entries`, expired entries are dropped
    first and then the oldest-inserted entry is evicted. Overwriting a key
    counts as a fresh insertion. A ttl of 0 means the entry never expires.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL, max_entries: int = DEFAULT_MAX_ENTRIES,
                 clock: Callable[[], float] = time.time):
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        # key -> (expires_at, value); dict order is insertion order
        self._data: Dict[str, Tuple[float, Any]] = {}
        self.hits = 0
        self.misses = 0

    def _live(self, key: str) -> Any:
        it = self._data.get(key)
        if it is None:
            return _MISSING
        exp, value = it
        if exp <= self._clock():
            self._data.pop(key, None)
            return _MISSING
        return value

    def get(self, key: str, default: Any = None) -> Any:
        value = self._live(key)
        if value is _MISSING:
            self.misses += 1
            return default
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = self.ttl if ttl is None else ttl
        self._data.pop(key, None)
        if len(self._data) >= self.max_entries:
            self.prune()
        while len(self._data) >= self.max_entries:
            oldest = next(iter(self._data))
            self._data.pop(oldest)
            logger.debug("cache full, evicted %s", oldest)
        exp = float("inf") if ttl == 0 else self._clock() + ttl
        self._data[key] = (exp, value)
        return True

    def has(self, key: str) -> bool:
        return self._live(key) is not _MISSING

    def delete(self, key: str) -> int:
        return 1 if self._data.pop(key, None) is not None else 0

    def keys(self) -> List[str]:
        self.prune()
        return list(self._data)

    def flush(self) -> int:
        n = len(self._data)
        self._data.clear()
        return n

    def prune(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [k for k, (exp, _) in self._data.items() if exp <= now]
        for k in expired:
            self._data.pop(k, None)
        return len(expired)

    def mget(self, keys: Iterable[str]) -> Dict[str, Any]:
        out = {}
        for k in keys:
            value = self.get(k, _MISSING)
            if value is not _MISSING:
                out[k] = value
        return out

    def mset(self, pairs: Iterable[Dict[str, Any]]) -> bool:
        for p in pairs:
            self.set(p["key"], p["val"], p.get("ttl"))
        return True

    def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key containing `pattern` as a substring."""
        matching = [k for k in self._data if pattern in k]
        for k in matching:
            self._data.pop(k, None)
        return len(matching)

    async def get_or_set(self, key: str, compute: Callable[[], Awaitable[Any]], ttl: Optional[int] = None) -> Any:
        # No single-flight: concurrent misses both compute, last write wins.
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        value = await compute()
        self.set(key, value, ttl)
        return value

    def stats(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": len(self._data),
            "ttlSec": self.ttl,
            "maxEntries": self.max_entries,
        }

    def __len__(self) -> int:
        return len(self._data)


def cache_key(*parts: Optional[str]) -> str:
    """Deterministic key from parts; empty parts become 'default'."""
    return ":".join(p if p else "default" for p in parts)


def cache_key_gql(query: str, variables: dict) -> str:
    """Generate a cache key for GraphQL queries."""
    hq = hashlib.sha1(query.encode("utf-8")).hexdigest()
    hv = hashlib.sha1(json.dumps(variables, sort_keys=True, ensure_ascii=False).encode("utf-8")).hexdigest()
    return f"GQL|{hq}|{hv}"
