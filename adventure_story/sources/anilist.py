# SPDX-License-Identifier: MIT
"""AniList GraphQL fetcher."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.cache import TTLCache, cache_key_gql, GQL_TTL
from ..core.normalizers import norm_media_from_anilist, norm_character_from_anilist
from ..core.relevance import best_title_score
from ..models.types import AniListInfo
from .base import SourceFetcher

logger = logging.getLogger(__name__)

_MEDIA_FIELDS = """
  id
  title { romaji english native }
  description
  type
  format
  status
  episodes
  chapters
  volumes
  genres
  tags { name description rank }
  coverImage { large medium color }
  bannerImage
  averageScore
  popularity
  favourites
  source
  season
  seasonYear
  startDate { year month day }
  endDate { year month day }
"""

SEARCH_MEDIA = """
query ($search: String, $type: MediaType) {
  Page(page: 1, perPage: 20) {
    media(search: $search, type: $type, sort: POPULARITY_DESC) {%s}
  }
}
""" % _MEDIA_FIELDS

MEDIA_BY_ID = """
query ($id: Int) {
  Media(id: $id) {%s
    characters(page: 1, perPage: 25, sort: ROLE) {
      nodes { id name { first middle last full native } description image { large medium } }
    }
    studios { nodes { name isAnimationStudio } }
  }
}
""" % _MEDIA_FIELDS

CHARACTER_BY_ID = """
query ($id: Int) {
  Character(id: $id) {
    id
    name { first middle last full native }
    description
    image { large medium }
    favourites
    media(page: 1, perPage: 25, sort: POPULARITY_DESC) {
      nodes { id title { romaji english native } type format coverImage { medium } }
    }
    dateOfBirth { year month day }
    age
    gender
    bloodType
  }
}
"""

SEARCH_CHARACTERS = """
query ($search: String) {
  Page(page: 1, perPage: 20) {
    characters(search: $search, sort: FAVOURITES_DESC) {
      id
      name { first middle last full native }
      description
      image { large medium }
      favourites
      media(page: 1, perPage: 3, sort: POPULARITY_DESC) {
        nodes { id title { romaji english } type }
      }
    }
  }
}
"""

TRENDING = """
query ($page: Int, $type: MediaType) {
  Page(page: $page, perPage: 20) {
    media(type: $type, sort: TRENDING_DESC, isAdult: false) {
      id
      title { romaji english native }
      description
      episodes
      chapters
      volumes
      genres
      averageScore
      popularity
      coverImage { large medium }
      season
      seasonYear
    }
  }
}
"""


class AniListFetcher(SourceFetcher):
    name = "anilist"
    backoff = 5.0

    def __init__(self, *args, memo: Optional[TTLCache] = None, **kw):
        super().__init__(*args, **kw)
        self.memo = memo if memo is not None else TTLCache(ttl_seconds=GQL_TTL)

    async def gql(self, query: str, variables: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Execute a GraphQL query with a short-lived response memo.

        A body carrying `errors` is logged and treated as no data.
        """
        k = cache_key_gql(query, variables)
        cached = self.memo.get(k)
        if cached is not None:
            return cached

        data = await self._post_json(self.base_url, {"query": query, "variables": variables},
                                     headers={"Content-Type": "application/json", "Accept": "application/json"})
        if data is None:
            return None
        if data.get("errors"):
            logger.error("AniList GraphQL errors: %s", json.dumps(data["errors"], ensure_ascii=False))
            return None

        out = data.get("data")
        if out is not None:
            self.memo.set(k, out)
        return out

    async def search_media(self, query: str, type: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self.gql(SEARCH_MEDIA, {"search": query, "type": type})
        return ((data or {}).get("Page") or {}).get("media") or []

    async def get_media_by_id(self, id: int) -> Optional[Dict[str, Any]]:
        data = await self.gql(MEDIA_BY_ID, {"id": id})
        return (data or {}).get("Media")

    async def search_characters(self, query: str) -> List[Dict[str, Any]]:
        data = await self.gql(SEARCH_CHARACTERS, {"search": query})
        return ((data or {}).get("Page") or {}).get("characters") or []

    async def get_character_by_id(self, id: int) -> Optional[Dict[str, Any]]:
        data = await self.gql(CHARACTER_BY_ID, {"id": id})
        return (data or {}).get("Character")

    async def get_trending(self, type: str = "ANIME", page: int = 1) -> List[Dict[str, Any]]:
        data = await self.gql(TRENDING, {"page": page, "type": type})
        return ((data or {}).get("Page") or {}).get("media") or []

    async def _media_info(self, name: str, type: str) -> Optional[AniListInfo]:
        hits = await self.search_media(name, type)
        if not hits:
            return None
        # popularity sort puts the likely match first
        media = hits[0]
        detailed = await self.get_media_by_id(media["id"])
        return norm_media_from_anilist(media, detailed)

    async def get_anime_info(self, name: str) -> Optional[AniListInfo]:
        return await self._media_info(name, "ANIME")

    async def get_manga_info(self, name: str) -> Optional[AniListInfo]:
        return await self._media_info(name, "MANGA")

    async def get_character_info(self, source_name: str, character_name: str) -> Optional[Dict[str, Any]]:
        hits = await self.search_characters(character_name)
        if not hits:
            return None

        wanted = source_name.lower()

        def from_source(c: Dict[str, Any]) -> bool:
            for m in (c.get("media") or {}).get("nodes") or []:
                t = m.get("title") or {}
                if any(wanted in (t.get(k) or "").lower() for k in ("romaji", "english")):
                    return True
            return False

        character = next((c for c in hits if from_source(c)), hits[0])
        detailed = await self.get_character_by_id(character["id"])
        return norm_character_from_anilist(character, detailed)

    @staticmethod
    def relevance(media: Dict[str, Any], query: str) -> float:
        t = media.get("title") or {}
        return best_title_score((t.get("romaji"), t.get("english"), t.get("native")), query)
