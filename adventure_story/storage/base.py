# SPDX-License-Identifier: MIT
"""Persistence interface for adventure contexts, events and the story cache."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ..models.types import AdventureContext, AdventureEvent


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def expires_in(ttl_hours: float) -> str:
    return iso(utc_now() + timedelta(hours=ttl_hours))


class AdventureStore(ABC):
    """Synchronous store; services call it through asyncio.to_thread."""

    @abstractmethod
    def save_context(self, context: AdventureContext) -> None:
        """Upsert by adventure_id. An existing row keeps its created_at."""

    @abstractmethod
    def get_context(self, adventure_id: str) -> Optional[AdventureContext]:
        ...

    @abstractmethod
    def add_event(self, adventure_id: str, event: AdventureEvent) -> None:
        ...

    @abstractmethod
    def recent_events(self, adventure_id: str, limit: int = 10) -> List[AdventureEvent]:
        """Newest first."""

    @abstractmethod
    def list_adventures(self) -> List[Dict[str, Any]]:
        """`{adventureId, sourceName, lastUpdated}`, most recently updated first."""

    @abstractmethod
    def delete_context(self, adventure_id: str) -> bool:
        ...

    @abstractmethod
    def cache_story_data(self, key: str, source_name: str, data: Any, ttl_hours: float = 24) -> None:
        ...

    @abstractmethod
    def get_cached_story_data(self, key: str) -> Optional[Any]:
        """Unexpired payload for `key`, else None."""

    @abstractmethod
    def clean_expired_cache(self) -> int:
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> "AdventureStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
