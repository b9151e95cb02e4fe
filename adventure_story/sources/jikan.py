# SPDX-License-Identifier: MIT
"""Jikan (MyAnimeList) REST fetcher."""

import logging
from typing import Any, Dict, List, Optional

from ..core.normalizers import norm_anime_from_jikan, norm_anime_character_from_jikan, image_urls
from ..core.relevance import relevance_score, sort_by_relevance
from ..models.types import AnimeInfo, SearchResult
from .base import SourceFetcher

logger = logging.getLogger(__name__)


class JikanFetcher(SourceFetcher):
    name = "jikan"
    backoff = 3.0

    async def _data(self, path: str, params: Optional[dict] = None) -> Any:
        payload = await self._get_json(f"{self.base_url}{path}", params=params)
        return (payload or {}).get("data")

    async def search_anime(self, query: str) -> List[Dict[str, Any]]:
        return await self._data("/anime", {"q": query, "limit": 10, "order_by": "score", "sort": "desc"}) or []

    async def search_characters(self, query: str) -> List[Dict[str, Any]]:
        return await self._data("/characters", {"q": query, "limit": 10, "order_by": "favorites", "sort": "desc"}) or []

    async def get_anime_details(self, mal_id: int) -> Optional[AnimeInfo]:
        data = await self._data(f"/anime/{mal_id}")
        return norm_anime_from_jikan(data) if data else None

    async def get_anime_characters(self, mal_id: int) -> List[Dict[str, Any]]:
        data = await self._data(f"/anime/{mal_id}/characters") or []
        return [norm_anime_character_from_jikan(item) for item in data]

    async def get_character_details(self, mal_id: int) -> Optional[Dict[str, Any]]:
        return await self._data(f"/characters/{mal_id}")

    async def get_anime_episodes(self, mal_id: int) -> List[Dict[str, Any]]:
        return await self._data(f"/anime/{mal_id}/episodes") or []

    async def get_seasonal_anime(self, year: int, season: str) -> List[Dict[str, Any]]:
        return await self._data(f"/seasons/{year}/{season.lower()}") or []

    async def get_top_anime(self, type: Optional[str] = None, filter: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if type:
            params["type"] = type
        if filter:
            params["filter"] = filter
        return await self._data("/top/anime", params or None) or []

    async def find_anime(self, source_name: str) -> Optional[Dict[str, Any]]:
        """First (most relevant) search hit for a title, raw Jikan shape."""
        hits = await self.search_anime(source_name)
        return hits[0] if hits else None

    async def get_anime_info(self, source_name: str) -> Optional[AnimeInfo]:
        anime = await self.find_anime(source_name)
        if anime is None:
            logger.warning("No anime found for: %s", source_name)
            return None

        info = await self.get_anime_details(anime["mal_id"]) or norm_anime_from_jikan(anime)
        characters = await self.get_anime_characters(anime["mal_id"])
        info["characters"] = [c["name"] for c in characters if c["name"]][:20]
        return info

    async def get_character_info(self, source_name: str, character_name: str) -> Optional[Dict[str, Any]]:
        hits = await self.search_characters(character_name)
        if not hits:
            return None

        wanted = source_name.lower()
        character = next(
            (c for c in hits
             if any(wanted in ((a.get("anime") or {}).get("title") or a.get("title") or "").lower()
                    for a in c.get("anime") or [])),
            hits[0],
        )
        detail = await self.get_character_details(character["mal_id"]) or {}
        return {
            "description": detail.get("about") or "",
            "images": image_urls(detail.get("images")),
            "voiceActors": detail.get("voices") or detail.get("voice_actors") or [],
            "animeography": detail.get("anime") or [],
        }

    def _character_result(self, c: Dict[str, Any], source_name: str, query: str) -> SearchResult:
        return {
            "type": "character",
            "name": c.get("name") or "",
            "description": c.get("about") or "",
            "source": source_name,
            "relevanceScore": relevance_score(c.get("name") or "", query),
            "additionalInfo": {"mal_id": c.get("mal_id"), "favorites": c.get("favorites")},
        }

    async def search_content(self, source_name: str, query: str, content_type: Optional[str] = None) -> List[SearchResult]:
        if content_type == "character":
            return sort_by_relevance([self._character_result(c, source_name, query)
                                      for c in await self.search_characters(query)])

        results: List[SearchResult] = [{
            "type": "anime",
            "name": a.get("title") or "",
            "description": a.get("synopsis") or "",
            "source": source_name,
            "relevanceScore": relevance_score(a.get("title") or "", query),
            "additionalInfo": {
                "mal_id": a.get("mal_id"),
                "type": a.get("type"),
                "episodes": a.get("episodes"),
                "score": a.get("score"),
            },
        } for a in await self.search_anime(query)]

        if content_type == "all":
            results += [self._character_result(c, source_name, query)
                        for c in await self.search_characters(query)]
        return sort_by_relevance(results)
