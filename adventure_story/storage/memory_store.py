# SPDX-License-Identifier: MIT
"""In-memory adventure store for tests and ephemeral runs."""

import copy
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..models.types import AdventureContext, AdventureEvent
from .base import AdventureStore, expires_in, iso, utc_now


class MemoryAdventureStore(AdventureStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contexts: Dict[str, AdventureContext] = {}
        self._events: Dict[str, List[AdventureEvent]] = {}
        # key -> (source_name, expires_at, data)
        self._story_cache: Dict[str, Tuple[str, str, Any]] = {}

    def save_context(self, context: AdventureContext) -> None:
        ctx = copy.deepcopy(context)
        with self._lock:
            existing = self._contexts.get(ctx["adventure_id"])
            if existing is not None:
                ctx["created_at"] = existing["created_at"]
            self._contexts[ctx["adventure_id"]] = ctx

    def get_context(self, adventure_id: str) -> Optional[AdventureContext]:
        with self._lock:
            ctx = self._contexts.get(adventure_id)
            return copy.deepcopy(ctx) if ctx is not None else None

    def add_event(self, adventure_id: str, event: AdventureEvent) -> None:
        ev = dict(event)
        ev.setdefault("timestamp", iso(utc_now()))
        with self._lock:
            self._events.setdefault(adventure_id, []).append(ev)

    def recent_events(self, adventure_id: str, limit: int = 10) -> List[AdventureEvent]:
        with self._lock:
            events = list(self._events.get(adventure_id, []))
        # reversed first so equal timestamps come out newest-inserted first
        events.reverse()
        events.sort(key=lambda e: e.get("timestamp") or "", reverse=True)
        return [copy.deepcopy(e) for e in events[:limit]]

    def list_adventures(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [{"adventureId": c["adventure_id"], "sourceName": c["source_name"], "lastUpdated": c["updated_at"]}
                    for c in self._contexts.values()]
        return sorted(rows, key=lambda r: r["lastUpdated"], reverse=True)

    def delete_context(self, adventure_id: str) -> bool:
        with self._lock:
            self._events.pop(adventure_id, None)
            return self._contexts.pop(adventure_id, None) is not None

    def cache_story_data(self, key: str, source_name: str, data: Any, ttl_hours: float = 24) -> None:
        with self._lock:
            self._story_cache[key] = (source_name, expires_in(ttl_hours), copy.deepcopy(data))

    def get_cached_story_data(self, key: str) -> Optional[Any]:
        with self._lock:
            it = self._story_cache.get(key)
        if it is None or it[1] <= iso(utc_now()):
            return None
        return copy.deepcopy(it[2])

    def clean_expired_cache(self) -> int:
        now = iso(utc_now())
        with self._lock:
            expired = [k for k, (_, exp, _) in self._story_cache.items() if exp <= now]
            for k in expired:
                del self._story_cache[k]
        return len(expired)
