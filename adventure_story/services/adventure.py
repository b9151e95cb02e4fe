# SPDX-License-Identifier: MIT
"""Persisted adventure contexts and the state view built from them."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..core.cache import TTLCache
from ..core.errors import AdventureNotFoundError
from ..models.types import AdventureContext, AdventureState, PlotPoint
from ..storage import AdventureStore
from .merge import now_iso

logger = logging.getLogger(__name__)

RECENT_EVENTS = 10


def default_story_state() -> Dict[str, Any]:
    return {
        "major_events": [],
        "character_relationships": {},
        "plot_points": [],
        "player_choices": [],
        "world_state": {},
    }


def build_ai_context(context: AdventureContext) -> Dict[str, Any]:
    state = context.get("story_state") or {}
    facts = [
        f"Current arc: {context.get('current_arc') or 'Unknown'}",
        f"Active characters: {', '.join(context.get('active_characters') or [])}",
        f"Current location: {state.get('current_location') or 'Unknown'}",
        f"Major events: {', '.join((state.get('major_events') or [])[-3:])}",
    ]
    active = [p["description"] for p in state.get("plot_points") or [] if p.get("status") == "active"]
    if active:
        facts.append(f"Active plot points: {', '.join(active)}")
    choices = [c["choice"] for c in (state.get("player_choices") or [])[-3:]]
    if choices:
        facts.append(f"Recent player choices: {', '.join(choices)}")
    return {
        "narrative_tone": "engaging",
        "important_facts": facts,
        "character_states": {},
        "location_details": {},
    }


class AdventureService:
    def __init__(self, store: AdventureStore, cache: Optional[TTLCache] = None):
        self.store = store
        self.cache = cache if cache is not None else TTLCache()

    @staticmethod
    def _context_key(adventure_id: str) -> str:
        return f"adventure_context:{adventure_id}"

    @staticmethod
    def _state_key(adventure_id: str) -> str:
        return f"adventure_state:{adventure_id}"

    def _invalidate(self, adventure_id: str, context: bool = False) -> None:
        self.cache.delete(self._state_key(adventure_id))
        if context:
            self.cache.delete(self._context_key(adventure_id))

    async def set_adventure_context(self, adventure_id: str, source_name: str,
                                    current_arc: Optional[str] = None,
                                    active_characters: Optional[List[str]] = None,
                                    story_state: Optional[Dict[str, Any]] = None) -> AdventureContext:
        """Upsert the context; concurrent writers resolve last-write-wins."""
        ts = now_iso()
        context: AdventureContext = {
            "adventure_id": adventure_id,
            "source_name": source_name,
            "current_arc": current_arc,
            "active_characters": list(active_characters or []),
            "story_state": {**default_story_state(), **(story_state or {})},
            "created_at": ts,
            "updated_at": ts,
        }
        await asyncio.to_thread(self.store.save_context, context)
        # the store keeps created_at of an existing row
        context = await asyncio.to_thread(self.store.get_context, adventure_id) or context
        self.cache.set(self._context_key(adventure_id), context)
        self._invalidate(adventure_id)
        logger.info("Adventure context set for adventure %s", adventure_id)
        return context

    async def get_context(self, adventure_id: str) -> Optional[AdventureContext]:
        cached = self.cache.get(self._context_key(adventure_id))
        if cached is not None:
            return cached
        context = await asyncio.to_thread(self.store.get_context, adventure_id)
        if context is not None:
            self.cache.set(self._context_key(adventure_id), context)
        return context

    async def get_adventure_state(self, adventure_id: str) -> Optional[AdventureState]:
        key = self._state_key(adventure_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        context = await asyncio.to_thread(self.store.get_context, adventure_id)
        if context is None:
            return None
        events = await asyncio.to_thread(self.store.recent_events, adventure_id, RECENT_EVENTS)
        state: AdventureState = {
            "context": context,
            "recent_events": events,
            "ai_context": build_ai_context(context),
        }
        self.cache.set(key, state)
        return state

    async def _load(self, adventure_id: str) -> AdventureContext:
        context = await asyncio.to_thread(self.store.get_context, adventure_id)
        if context is None:
            raise AdventureNotFoundError(adventure_id)
        context["story_state"] = {**default_story_state(), **(context.get("story_state") or {})}
        return context

    async def _save(self, context: AdventureContext) -> None:
        context["updated_at"] = now_iso()
        await asyncio.to_thread(self.store.save_context, context)
        self._invalidate(context["adventure_id"], context=True)

    async def update_story_state(self, adventure_id: str, updates: Dict[str, Any]) -> AdventureContext:
        context = await self._load(adventure_id)
        context["story_state"].update(updates)
        await self._save(context)
        return context

    async def add_player_choice(self, adventure_id: str, choice: str,
                                consequences: Optional[List[str]] = None) -> Dict[str, Any]:
        context = await self._load(adventure_id)
        entry = {"choice": choice, "consequences": list(consequences or []), "timestamp": now_iso()}
        context["story_state"]["player_choices"].append(entry)
        await self._save(context)
        await asyncio.to_thread(self.store.add_event, adventure_id, {
            "type": "choice",
            "content": choice,
            "characters": context["active_characters"],
            "location": context["story_state"].get("current_location"),
            "timestamp": entry["timestamp"],
        })
        logger.info("Player choice recorded for adventure %s", adventure_id)
        return entry

    async def update_character_relationship(self, adventure_id: str, character1: str,
                                            character2: str, relationship: str) -> None:
        context = await self._load(adventure_id)
        rels = context["story_state"]["character_relationships"]
        rels.setdefault(character1, {})[character2] = relationship
        await self._save(context)

    async def add_plot_point(self, adventure_id: str, plot_point: PlotPoint) -> None:
        context = await self._load(adventure_id)
        context["story_state"]["plot_points"].append(dict(plot_point))
        await self._save(context)

    async def update_plot_point_status(self, adventure_id: str, plot_point_id: str, status: str) -> None:
        context = await self._load(adventure_id)
        point = next((p for p in context["story_state"]["plot_points"] if p.get("id") == plot_point_id), None)
        if point is None:
            raise LookupError(f"Plot point not found: {plot_point_id}")
        point["status"] = status
        await self._save(context)

    async def list_adventures(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.store.list_adventures)

    async def delete_adventure_context(self, adventure_id: str) -> bool:
        deleted = await asyncio.to_thread(self.store.delete_context, adventure_id)
        self._invalidate(adventure_id, context=True)
        return deleted
