# SPDX-License-Identifier: MIT
"""Character aggregation across the wiki, Jikan and AniList."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.cache import cache_key
from ..core.fanout import gather_settled
from ..models.types import CharacterData
from ..sources import AniListFetcher, JikanFetcher, WikiFetcher
from .base import AggregationService
from .merge import fill, fill_all, now_iso, union

logger = logging.getLogger(__name__)

ENHANCING_ARCS = ("timeskip", "war")


def default_character(name: str, source_name: str, arc: Optional[str] = None) -> CharacterData:
    status: Dict[str, Any] = {"alive": True}
    if arc:
        status["arc"] = arc
    return {
        "name": name,
        "aliases": [],
        "source": source_name,
        "appearance": {"description": ""},
        "personality": {"traits": [], "description": ""},
        "abilities": {"powers": [], "skills": [], "weapons": [], "specialAbilities": []},
        "relationships": {"allies": [], "enemies": [], "family": []},
        "backstory": {"origin": "", "keyEvents": [], "development": []},
        "currentStatus": status,
        "quotes": [],
        "images": [],
        "lastUpdated": now_iso(),
    }


def merge_character(name: str, source_name: str, wiki: Optional[Dict[str, Any]],
                    jikan: Optional[Dict[str, Any]], anilist: Optional[Dict[str, Any]],
                    arc: Optional[str] = None) -> CharacterData:
    """Wiki structure first; Jikan then AniList fill what is still empty."""
    data = default_character(name, source_name, arc)

    if wiki:
        for section in ("appearance", "personality", "abilities", "relationships", "backstory"):
            data[section] = fill_all(dict(wiki.get(section) or {}), data[section])
        data["currentStatus"].update(wiki.get("currentStatus") or {})
        data["aliases"] = union(wiki.get("aliases"))
        data["quotes"] = list(wiki.get("quotes") or [])
        data["images"] = list(wiki.get("images") or [])

    if jikan:
        fill(data["appearance"], "description", jikan.get("description"))
        data["images"] += jikan.get("images") or []

    if anilist:
        fill(data["appearance"], "description", anilist.get("description"))
        data["aliases"] = union(data["aliases"], [anilist.get("name_native")])
        data["images"] += anilist.get("images") or []
        fill(data["appearance"], "species", anilist.get("gender"))
        if anilist.get("age"):
            fill(data["appearance"], "age", str(anilist["age"]))

    if arc:
        data["currentStatus"]["arc"] = arc
        apply_arc_context(data, arc)
    return data


def apply_arc_context(data: CharacterData, arc: str) -> CharacterData:
    lower = arc.lower()
    if any(word in lower for word in ENHANCING_ARCS):
        data["abilities"]["powers"] = [f"{p} (Enhanced during {arc})" for p in data["abilities"].get("powers") or []]
    return data


class CharacterService(AggregationService):
    def __init__(self, wiki: WikiFetcher, jikan: JikanFetcher, anilist: AniListFetcher, cache=None):
        super().__init__(cache)
        self.wiki = wiki
        self.jikan = jikan
        self.anilist = anilist

    async def get_character_data(self, character_name: str, source_name: str,
                                 arc_context: Optional[str] = None) -> CharacterData:
        key = cache_key("character", source_name, character_name, arc_context)

        async def compute() -> CharacterData:
            got = await gather_settled(f"character:{character_name}", {
                "wiki": self.wiki.get_character_info(source_name, character_name),
                "jikan": self.jikan.get_character_info(source_name, character_name),
                "anilist": self.anilist.get_character_info(source_name, character_name),
            })
            return merge_character(character_name, source_name, got["wiki"], got["jikan"], got["anilist"], arc_context)

        return await self._aggregate(key, compute,
                                     f'character information for "{character_name}" from "{source_name}"')

    async def get_character_relationships(self, character_name: str, source_name: str,
                                          arc_context: Optional[str] = None) -> Dict[str, List[str]]:
        rel = (await self.get_character_data(character_name, source_name, arc_context))["relationships"]
        return {
            "allies": rel.get("allies") or [],
            "enemies": rel.get("enemies") or [],
            "family": rel.get("family") or [],
            "students": rel.get("students") or [],
        }

    async def get_character_abilities(self, character_name: str, source_name: str,
                                      arc_context: Optional[str] = None) -> Dict[str, Any]:
        return (await self.get_character_data(character_name, source_name, arc_context))["abilities"]

    async def search_characters(self, source_name: str, query: str,
                                filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        filters = filters or {}
        key = cache_key("character_search", source_name, query, json.dumps(filters, sort_keys=True))

        async def compute() -> List[Dict[str, Any]]:
            results = await self.wiki.search_characters(source_name, query)
            return [r for r in results if _matches_character_filters(r.get("basicInfo") or {}, filters)]

        return await self._aggregate(key, compute, f'characters in "{source_name}"')

    async def validate_character_ability(self, character_name: str, source_name: str, ability_name: str,
                                         arc_context: Optional[str] = None) -> Dict[str, Any]:
        data = await self.get_character_data(character_name, source_name, arc_context)
        abilities = data["abilities"]
        known = (abilities.get("powers") or []) + (abilities.get("skills") or []) + (abilities.get("specialAbilities") or [])
        wanted = ability_name.lower()

        if any(a.lower() == wanted for a in known):
            return {"isValid": True, "confidence": 1.0}

        partial = [a for a in known if wanted in a.lower() or a.lower() in wanted]
        if partial:
            return {"isValid": True, "confidence": 0.7, "details": f"Similar abilities found: {', '.join(partial)}"}
        return {"isValid": False, "confidence": 0, "details": f"No matching abilities found for {character_name}"}


def _matches_character_filters(info: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    """Filters only apply to facts the search hit actually carries."""
    wanted = filters.get("abilities")
    abilities = info.get("abilities")
    if wanted and abilities:
        have = (abilities.get("powers") or []) + (abilities.get("specialAbilities") or [])
        if not any(a in have for a in wanted):
            return False

    status = info.get("currentStatus")
    if status is None:
        return True
    if filters.get("affiliation") and status.get("affiliation") != filters["affiliation"]:
        return False
    if filters.get("status") == "alive" and not status.get("alive"):
        return False
    if filters.get("status") == "deceased" and status.get("alive"):
        return False
    return True
