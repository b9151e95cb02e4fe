# SPDX-License-Identifier: MIT
"""MangaDex REST fetcher."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..core.normalizers import localized, mangadex_title, mangadex_tags, norm_chapter_from_mangadex
from ..core.relevance import best_title_score
from ..models.types import ChapterInfo, MangaDexInfo, SearchResult
from .base import SourceFetcher

logger = logging.getLogger(__name__)

COVER_BASE = "https://uploads.mangadex.org/covers"
INCLUDES = ["author", "artist", "cover_art"]


class MangaDexFetcher(SourceFetcher):
    name = "mangadex"
    backoff = 2.0

    async def _data(self, path: str, params: Optional[dict] = None) -> Any:
        payload = await self._get_json(f"{self.base_url}{path}", params=params)
        return (payload or {}).get("data")

    async def search_manga(self, query: str, limit: int = 20) -> List[Dict[str, Any]]:
        return await self._data("/manga", {
            "title": query,
            "limit": limit,
            "offset": 0,
            "includes[]": INCLUDES,
            "contentRating[]": ["safe", "suggestive", "erotica"],
            "order[relevance]": "desc",
        }) or []

    async def get_manga_by_id(self, id: str) -> Optional[Dict[str, Any]]:
        return await self._data(f"/manga/{id}", {"includes[]": INCLUDES})

    async def get_manga_chapters(self, manga_id: str, limit: int = 100,
                                 translated_language: Optional[str] = "en") -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": limit, "offset": 0, "order[chapter]": "asc"}
        if translated_language and translated_language != "all":
            params["translatedLanguage[]"] = [translated_language]
        return await self._data(f"/manga/{manga_id}/feed", params) or []

    async def get_author_by_id(self, id: str) -> Optional[Dict[str, Any]]:
        return await self._data(f"/author/{id}")

    async def _listing(self, order: str, limit: int) -> List[Dict[str, Any]]:
        return await self._data("/manga", {
            "limit": limit,
            "offset": 0,
            "includes[]": INCLUDES,
            "contentRating[]": ["safe", "suggestive"],
            f"order[{order}]": "desc",
            "hasAvailableChapters": "true",
        }) or []

    async def get_popular_manga(self, limit: int = 20) -> List[Dict[str, Any]]:
        return await self._listing("followedCount", limit)

    async def get_recently_updated(self, limit: int = 20) -> List[Dict[str, Any]]:
        return await self._listing("latestUploadedChapter", limit)

    async def _people(self, manga: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        """Author and artist names; unexpanded relationships are looked up one by one."""
        out: Dict[str, List[str]] = {"author": [], "artist": []}
        for rel in manga.get("relationships") or []:
            kind = rel.get("type")
            if kind not in out:
                continue
            name = (rel.get("attributes") or {}).get("name")
            if not name:
                try:
                    person = await self.get_author_by_id(rel["id"])
                except requests.RequestException as e:
                    logger.warning("Could not fetch %s %s: %s", kind, rel.get("id"), e)
                    continue
                name = ((person or {}).get("attributes") or {}).get("name")
            if name:
                out[kind].append(name)
        return out["author"], out["artist"]

    @staticmethod
    def cover_url(manga: Dict[str, Any]) -> Optional[str]:
        for rel in manga.get("relationships") or []:
            if rel.get("type") == "cover_art":
                file_name = (rel.get("attributes") or {}).get("fileName")
                if file_name:
                    return f"{COVER_BASE}/{manga.get('id')}/{file_name}"
        return None

    async def get_manga_info(self, name: str) -> Optional[MangaDexInfo]:
        hits = await self.search_manga(name)
        if not hits:
            return None

        manga = hits[0]
        a = manga.get("attributes") or {}
        authors, artists = await self._people(manga)
        alt_titles = [next(iter(t.values()), "") for t in a.get("altTitles") or [] if t]
        return {
            "mangadex_id": manga.get("id"),
            "title": mangadex_title(a.get("title")),
            "altTitles": [t for t in alt_titles if t],
            "description": localized(a.get("description"), "en"),
            "status": a.get("status") or "",
            "originalLanguage": a.get("originalLanguage") or "",
            "publicationDemographic": a.get("publicationDemographic"),
            "contentRating": a.get("contentRating") or "",
            "year": a.get("year"),
            "lastVolume": a.get("lastVolume"),
            "lastChapter": a.get("lastChapter"),
            "tags": mangadex_tags(a),
            "genres": mangadex_tags(a, "genre"),
            "themes": mangadex_tags(a, "theme"),
            "authors": authors,
            "artists": artists,
            "coverImage": self.cover_url(manga),
            "links": a.get("links") or {},
        }

    async def get_manga_chapter_list(self, name: str, translated_language: Optional[str] = "en") -> List[ChapterInfo]:
        hits = await self.search_manga(name, 1)
        if not hits:
            return []
        chapters = await self.get_manga_chapters(hits[0]["id"], translated_language=translated_language)
        return [norm_chapter_from_mangadex(ch) for ch in chapters]

    async def search_content(self, source_name: str, query: str, content_type: Optional[str] = None) -> List[SearchResult]:
        # MangaDex only knows about manga
        if content_type and content_type not in ("manga", "all"):
            return []

        results: List[SearchResult] = []
        for manga in await self.search_manga(query):
            a = manga.get("attributes") or {}
            results.append({
                "type": "manga",
                "name": mangadex_title(a.get("title")),
                "description": localized(a.get("description"), "en"),
                "source": source_name,
                "relevanceScore": best_title_score((a.get("title") or {}).values(), query),
                "additionalInfo": {
                    "mangadex_id": manga.get("id"),
                    "status": a.get("status"),
                    "contentRating": a.get("contentRating"),
                    "year": a.get("year"),
                    "tags": mangadex_tags(a),
                },
            })
        return results
