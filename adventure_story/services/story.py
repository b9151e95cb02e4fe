# SPDX-License-Identifier: MIT
"""Story-level aggregation: story info, timelines, search and validation."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..core.cache import cache_key
from ..core.fanout import gather_settled
from ..core.relevance import sort_by_relevance
from ..models.types import SearchResult, StoryInfo, TimelineEvent, ValidationResult
from ..sources import AniListFetcher, JikanFetcher, MangaDexFetcher, WikiFetcher
from ..storage import AdventureStore
from ..utils.helpers import in_range, parse_range
from .base import AggregationService
from .merge import fill, fill_all, now_iso, union

logger = logging.getLogger(__name__)


def default_story(name: str, setting: Optional[str] = None, arc: Optional[str] = None) -> StoryInfo:
    return {
        "name": name,
        "type": "other",
        "description": "",
        "worldBuilding": {
            "setting": setting or "Unknown",
            "timeType": "Unknown",
            "importantLocations": [],
            "mainOrganizations": [],
        },
        "plotSummary": "",
        "mainCharacters": [],
        "currentArc": arc,
        "arcs": [],
        "lastUpdated": now_iso(),
    }


def merge_story(name: str, jikan: Optional[Dict[str, Any]], anilist: Optional[Dict[str, Any]],
                wiki: Optional[Dict[str, Any]], setting: Optional[str] = None,
                arc: Optional[str] = None) -> StoryInfo:
    """Jikan synopsis, then AniList description, then the wiki intro."""
    info = default_story(name, setting, arc)
    jikan, anilist, wiki = jikan or {}, anilist or {}, wiki or {}

    if jikan or anilist:
        info["type"] = "anime"
    info["description"] = jikan.get("synopsis") or anilist.get("description") or wiki.get("description") or ""

    wb = dict(wiki.get("worldBuilding") or {})
    if setting:
        wb["setting"] = setting
    info["worldBuilding"] = fill_all(wb, info["worldBuilding"])

    fill(info, "plotSummary", wiki.get("plotSummary"))
    fill(info, "arcs", wiki.get("arcs"))
    info["mainCharacters"] = union(wiki.get("mainCharacters"), jikan.get("characters"), anilist.get("characters"))
    return info


def episode_event(ep: Dict[str, Any], arc: str = "") -> TimelineEvent:
    if ep.get("filler"):
        significance = "filler"
    elif ep.get("recap"):
        significance = "recap"
    else:
        significance = "canon"
    return {
        "episode": ep.get("mal_id"),
        "chapter": None,
        "arc": arc,
        "event": ep.get("title") or "",
        "characters": [],
        "location": "",
        "significance": significance,
        "consequences": [],
    }


class StoryService(AggregationService):
    def __init__(self, jikan: JikanFetcher, anilist: AniListFetcher, wiki: WikiFetcher,
                 mangadex: MangaDexFetcher, cache=None, store: Optional[AdventureStore] = None,
                 store_ttl_hours: float = 24):
        super().__init__(cache)
        self.jikan = jikan
        self.anilist = anilist
        self.wiki = wiki
        self.mangadex = mangadex
        self.store = store
        self.store_ttl_hours = store_ttl_hours

    async def get_story_info(self, source_name: str, setting: Optional[str] = None,
                             arc: Optional[str] = None) -> StoryInfo:
        key = cache_key("story_info", source_name, setting, arc)

        async def compute() -> StoryInfo:
            if self.store is not None:
                stored = await asyncio.to_thread(self.store.get_cached_story_data, key)
                if stored is not None:
                    return stored

            got = await gather_settled(f"story_info:{source_name}", {
                "jikan": self.jikan.get_anime_info(source_name),
                "anilist": self.anilist.get_anime_info(source_name),
                "wiki": self.wiki.get_story_info(source_name),
            })
            info = merge_story(source_name, got["jikan"], got["anilist"], got["wiki"], setting, arc)

            if self.store is not None:
                await asyncio.to_thread(self.store.cache_story_data, key, source_name, info, self.store_ttl_hours)
            return info

        return await self._aggregate(key, compute, f'story information for "{source_name}"')

    async def _jikan_episodes(self, source_name: str) -> List[TimelineEvent]:
        anime = await self.jikan.find_anime(source_name)
        if anime is None:
            return []
        return [episode_event(ep) for ep in await self.jikan.get_anime_episodes(anime["mal_id"])]

    async def get_timeline_events(self, source_name: str, arc_name: Optional[str] = None,
                                  episode_range: Optional[str] = None,
                                  chapter_range: Optional[str] = None) -> List[TimelineEvent]:
        key = cache_key("timeline", source_name, arc_name, episode_range, chapter_range)

        async def compute() -> List[TimelineEvent]:
            branches = {"wiki": self.wiki.get_timeline_events(source_name, arc_name)}
            # episode lists carry no arc tags, so they only apply unfiltered
            if not arc_name:
                branches["jikan"] = self._jikan_episodes(source_name)
            got = await gather_settled(f"timeline:{source_name}", branches)
            events: List[TimelineEvent] = (got["wiki"] or []) + (got.get("jikan") or [])

            episodes = parse_range(episode_range)
            if episodes:
                events = [e for e in events if in_range(e.get("episode"), episodes)]
            chapters = parse_range(chapter_range)
            if chapters:
                events = [e for e in events if in_range(e.get("chapter"), chapters)]
            return events

        return await self._aggregate(key, compute, f'timeline events for "{source_name}"')

    async def search_story_content(self, source_name: str, query: str,
                                   content_type: Optional[str] = None) -> List[SearchResult]:
        key = cache_key("search", source_name, query, content_type or "all")

        async def compute() -> List[SearchResult]:
            got = await gather_settled(f"search:{source_name}", {
                "wiki": self.wiki.search_content(source_name, query, content_type),
                "jikan": self.jikan.search_content(source_name, query, content_type),
                "mangadex": self.mangadex.search_content(source_name, query, content_type),
            })
            results: List[SearchResult] = []
            for name in ("wiki", "jikan", "mangadex"):
                results.extend(got[name] or [])
            return sort_by_relevance(results)

        return await self._aggregate(key, compute, f'search results in "{source_name}"')

    async def validate_story_element(self, source_name: str, element_type: str, element_name: str,
                                     context: Optional[str] = None) -> ValidationResult:
        key = cache_key("validate", source_name, element_type, element_name, context)

        async def compute() -> ValidationResult:
            results = await self.search_story_content(source_name, element_name, element_type)
            wanted = element_name.lower()
            same_type = [r for r in results if r.get("type") == element_type]
            exact = [r for r in same_type if (r.get("name") or "").lower() == wanted]

            out: ValidationResult = {
                "elementName": element_name,
                "elementType": element_type,
                "source": source_name,
            }
            if exact:
                out.update(isValid=True, confidence=exact[0].get("relevanceScore", 0),
                           canonicalInfo=exact[0].get("additionalInfo") or {})
            else:
                out.update(isValid=False, confidence=0,
                           alternativeSuggestions=[r["name"] for r in same_type[:3]])
            return out

        return await self._aggregate(key, compute, f'validation of "{element_name}" in "{source_name}"')
