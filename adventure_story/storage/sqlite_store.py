# SPDX-License-Identifier: MIT
"""SQLite-backed adventure store."""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.types import AdventureContext, AdventureEvent
from .base import AdventureStore, expires_in, iso, utc_now

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS adventure_contexts (
  adventure_id TEXT PRIMARY KEY,
  source_name TEXT NOT NULL,
  current_arc TEXT,
  active_characters TEXT,
  story_state TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS adventure_events (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  adventure_id TEXT NOT NULL,
  event_type TEXT NOT NULL,
  event_content TEXT NOT NULL,
  characters TEXT,
  location TEXT,
  timestamp TEXT NOT NULL,
  FOREIGN KEY (adventure_id) REFERENCES adventure_contexts (adventure_id) ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS story_cache (
  cache_key TEXT PRIMARY KEY,
  source_name TEXT NOT NULL,
  cache_data TEXT NOT NULL,
  created_at TEXT NOT NULL,
  expires_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_adventure_events_adventure_id ON adventure_events (adventure_id);
CREATE INDEX IF NOT EXISTS idx_adventure_events_timestamp ON adventure_events (timestamp);
CREATE INDEX IF NOT EXISTS idx_story_cache_source ON story_cache (source_name);
CREATE INDEX IF NOT EXISTS idx_story_cache_expires ON story_cache (expires_at);
"""


class SQLiteAdventureStore(AdventureStore):
    def __init__(self, path: str = "./data/stories.db") -> None:
        self._path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        # Calls arrive from worker threads; the lock serializes them.
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(path), timeout=30, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock:
            self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ---------- adventure contexts ----------

    def save_context(self, context: AdventureContext) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO adventure_contexts
                  (adventure_id, source_name, current_arc, active_characters, story_state, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(adventure_id) DO UPDATE SET
                  source_name = excluded.source_name,
                  current_arc = excluded.current_arc,
                  active_characters = excluded.active_characters,
                  story_state = excluded.story_state,
                  updated_at = excluded.updated_at
                """,
                (
                    context["adventure_id"],
                    context["source_name"],
                    context.get("current_arc"),
                    json.dumps(context.get("active_characters") or [], ensure_ascii=False),
                    json.dumps(context.get("story_state") or {}, ensure_ascii=False),
                    context["created_at"],
                    context["updated_at"],
                ),
            )

    def get_context(self, adventure_id: str) -> Optional[AdventureContext]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM adventure_contexts WHERE adventure_id = ?", (adventure_id,)
            ).fetchone()
        if row is None:
            return None
        return {
            "adventure_id": row["adventure_id"],
            "source_name": row["source_name"],
            "current_arc": row["current_arc"],
            "active_characters": json.loads(row["active_characters"] or "[]"),
            "story_state": json.loads(row["story_state"] or "{}"),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    def list_adventures(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT adventure_id, source_name, updated_at FROM adventure_contexts ORDER BY updated_at DESC"
            ).fetchall()
        return [{"adventureId": r["adventure_id"], "sourceName": r["source_name"], "lastUpdated": r["updated_at"]}
                for r in rows]

    def delete_context(self, adventure_id: str) -> bool:
        with self._lock:
            self._conn.execute("DELETE FROM adventure_events WHERE adventure_id = ?", (adventure_id,))
            cur = self._conn.execute("DELETE FROM adventure_contexts WHERE adventure_id = ?", (adventure_id,))
        return cur.rowcount > 0

    # ---------- events ----------

    def add_event(self, adventure_id: str, event: AdventureEvent) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO adventure_events
                  (adventure_id, event_type, event_content, characters, location, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    adventure_id,
                    event["type"],
                    event["content"],
                    json.dumps(event.get("characters") or [], ensure_ascii=False),
                    event.get("location"),
                    event.get("timestamp") or iso(utc_now()),
                ),
            )

    def recent_events(self, adventure_id: str, limit: int = 10) -> List[AdventureEvent]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT event_type, event_content, characters, location, timestamp
                FROM adventure_events
                WHERE adventure_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (adventure_id, limit),
            ).fetchall()
        return [{
            "type": r["event_type"],
            "content": r["event_content"],
            "characters": json.loads(r["characters"] or "[]"),
            "location": r["location"],
            "timestamp": r["timestamp"],
        } for r in rows]

    # ---------- story cache ----------

    def cache_story_data(self, key: str, source_name: str, data: Any, ttl_hours: float = 24) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO story_cache (cache_key, source_name, cache_data, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (key, source_name, json.dumps(data, ensure_ascii=False), iso(utc_now()), expires_in(ttl_hours)),
            )

    def get_cached_story_data(self, key: str) -> Optional[Any]:
        with self._lock:
            row = self._conn.execute(
                "SELECT cache_data FROM story_cache WHERE cache_key = ? AND expires_at > ?",
                (key, iso(utc_now())),
            ).fetchone()
        return json.loads(row["cache_data"]) if row else None

    def clean_expired_cache(self) -> int:
        with self._lock:
            cur = self._conn.execute("DELETE FROM story_cache WHERE expires_at <= ?", (iso(utc_now()),))
        n = cur.rowcount
        if n:
            logger.info("removed %d expired story cache rows", n)
        return n
