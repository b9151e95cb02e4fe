# SPDX-License-Identifier: MIT
"""Adventure persistence backends."""

from .base import AdventureStore
from .memory_store import MemoryAdventureStore
from .sqlite_store import SQLiteAdventureStore


def open_store(backend: str, path: str) -> AdventureStore:
    if backend == "memory":
        return MemoryAdventureStore()
    return SQLiteAdventureStore(path)


__all__ = ["AdventureStore", "MemoryAdventureStore", "SQLiteAdventureStore", "open_store"]
