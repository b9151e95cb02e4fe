# SPDX-License-Identifier: MIT
"""Manga lookups and anime/manga adaptation comparisons."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.cache import cache_key
from ..core.fanout import gather_settled
from ..sources import AniListFetcher, JikanFetcher, MangaDexFetcher
from ..utils.helpers import parse_range, season_from_month
from .base import AggregationService
from .story import StoryService

logger = logging.getLogger(__name__)

CHAPTER_PREVIEW = 50
LATEST_CHAPTERS = 10
FOCUS_AREAS = ("characters", "plot", "timeline", "differences")


def shared(a: List[str], b: List[str]) -> List[str]:
    return [x for x in a if x in b]


def differences(a: List[str], b: List[str]) -> Dict[str, List[str]]:
    return {"only_in_first": [x for x in a if x not in b], "only_in_second": [x for x in b if x not in a]}


def word_similarity(s1: Optional[str], s2: Optional[str]) -> float:
    if not s1 or not s2:
        return 0.0
    w1, w2 = s1.lower().split(), s2.lower().split()
    return len(shared(w1, w2)) / max(len(w1), len(w2))


def _chapter_number(ch: Dict[str, Any]) -> float:
    try:
        return float(ch.get("chapter") or 0)
    except ValueError:
        return 0.0


class MangaService(AggregationService):
    def __init__(self, mangadex: MangaDexFetcher, anilist: AniListFetcher, jikan: JikanFetcher,
                 story: StoryService, cache=None, clock=None):
        super().__init__(cache)
        self.mangadex = mangadex
        self.anilist = anilist
        self.jikan = jikan
        self.story = story
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_manga_info(self, manga_name: str, include_chapters: bool = False,
                             language: str = "en") -> Dict[str, Any]:
        key = cache_key("manga_info", manga_name, str(include_chapters).lower(), language)

        async def compute() -> Dict[str, Any]:
            got = await gather_settled(f"manga_info:{manga_name}", {
                "mangadex": self.mangadex.get_manga_info(manga_name),
                "anilist": self.anilist.get_manga_info(manga_name),
            })
            md, al = got["mangadex"] or {}, got["anilist"] or {}
            sources = {name: value for name, value in (("mangadex", md), ("anilist", al)) if value}
            info: Dict[str, Any] = {
                "name": manga_name,
                "sources": sources,
                "title": md.get("title") or al.get("title") or manga_name,
                "description": md.get("description") or al.get("description") or "",
                "status": md.get("status") or al.get("status") or "unknown",
                "genres": (md.get("genres") or []) + (al.get("genres") or []),
                "authors": md.get("authors") or [],
                "year": md.get("year") or al.get("year") or (al.get("startDate") or {}).get("year"),
            }
            if include_chapters and md.get("mangadex_id"):
                feed = await gather_settled(f"manga_chapters:{manga_name}", {
                    "chapters": self.mangadex.get_manga_chapter_list(manga_name, language),
                })
                if feed["chapters"] is not None:
                    info["chapters"] = feed["chapters"][:CHAPTER_PREVIEW]
            return info

        return await self._aggregate(key, compute, f'manga info for "{manga_name}"')

    async def get_manga_chapters(self, manga_name: str, chapter_range: Optional[str] = None,
                                 translated_language: str = "en") -> Dict[str, Any]:
        chapters = await self.mangadex.get_manga_chapter_list(manga_name, translated_language)
        selected = chapters

        if chapter_range and chapter_range != "all":
            if chapter_range == "latest":
                selected = chapters[-LATEST_CHAPTERS:]
            else:
                bounds = parse_range(chapter_range)
                if bounds:
                    selected = [ch for ch in chapters if bounds[0] <= _chapter_number(ch) <= bounds[1]]

        if translated_language != "all":
            selected = [ch for ch in selected if ch.get("translatedLanguage") == translated_language]

        return {
            "manga_name": manga_name,
            "total_chapters": len(chapters),
            "filtered_chapters": len(selected),
            "chapters": selected,
        }

    async def compare_adaptations(self, source_name: str, focus_area: str = "all") -> Dict[str, Any]:
        key = cache_key("compare", source_name, focus_area)

        async def compute() -> Dict[str, Any]:
            got = await gather_settled(f"compare:{source_name}", {
                "anime": self.anilist.get_anime_info(source_name),
                "manga": self.anilist.get_manga_info(source_name),
            })
            anime, manga = got["anime"], got["manga"]
            out: Dict[str, Any] = {
                "source_name": source_name,
                "has_anime": anime is not None,
                "has_manga": manga is not None,
                "comparison": {},
            }
            if anime is None or manga is None:
                return out

            areas = FOCUS_AREAS if focus_area == "all" else (focus_area,)
            cmp = out["comparison"]
            if "characters" in areas:
                cmp["characters"] = {
                    "anime_characters": anime.get("characters") or [],
                    "manga_characters": manga.get("characters") or [],
                    "shared_characters": shared(anime.get("characters") or [], manga.get("characters") or []),
                }
            if "plot" in areas:
                cmp["plot"] = {
                    "anime_description": anime.get("description"),
                    "manga_description": manga.get("description"),
                    "description_similarity": word_similarity(anime.get("description"), manga.get("description")),
                }
            if "timeline" in areas:
                cmp["timeline"] = {
                    "anime_episodes": anime.get("episodes"),
                    "manga_chapters": manga.get("chapters"),
                    "anime_year": anime.get("year"),
                    "manga_start_year": (manga.get("startDate") or {}).get("year"),
                }
            if "differences" in areas:
                cmp["differences"] = {
                    "genre_differences": differences(anime.get("genres") or [], manga.get("genres") or []),
                    "format_differences": {"anime_format": anime.get("format"), "manga_format": manga.get("format")},
                }
            return out

        return await self._aggregate(key, compute, f'adaptation comparison for "{source_name}"')

    async def _popular_anime(self, time_period: str) -> List[Dict[str, Any]]:
        if time_period == "seasonal":
            now = self._clock()
            return await self.jikan.get_seasonal_anime(now.year, season_from_month(now.month))
        if time_period == "all_time":
            return await self.jikan.get_top_anime()
        return await self.anilist.get_trending("ANIME")

    async def get_popular_content(self, content_type: str = "both", time_period: str = "current",
                                  limit: int = 20) -> Dict[str, Any]:
        key = cache_key("popular", content_type, time_period, str(limit))

        async def compute() -> Dict[str, Any]:
            branches = {}
            if content_type in ("anime", "both"):
                branches["anime"] = self._popular_anime(time_period)
            if content_type in ("manga", "both"):
                branches["manga"] = self.anilist.get_trending("MANGA")
                if time_period == "all_time":
                    branches["mangadex"] = self.mangadex.get_popular_manga(limit)
                else:
                    branches["mangadex"] = self.mangadex.get_recently_updated(limit)
            got = await gather_settled("popular", branches)

            out: Dict[str, Any] = {"time_period": time_period}
            if "anime" in got:
                out["popular_anime"] = (got["anime"] or [])[:limit]
            if "manga" in got:
                out["popular_manga"] = (got["manga"] or [])[:limit]
                out["popular_manga_mangadex"] = (got["mangadex"] or [])[:limit]
            return out

        return await self._aggregate(key, compute, "popular content")

    async def validate_canon(self, source_name: str, element_description: str,
                             adaptation_type: str = "both") -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        for kind in ("anime", "manga"):
            if adaptation_type in (kind, "both"):
                results[kind] = await self.story.validate_story_element(source_name, kind, element_description)

        anime_ok = bool((results.get("anime") or {}).get("isValid"))
        manga_ok = bool((results.get("manga") or {}).get("isValid"))
        return {
            "source_name": source_name,
            "element_description": element_description,
            "validation_results": results,
            "overall_canonical": (anime_ok and manga_ok) if adaptation_type == "both" else (anime_ok or manga_ok),
            "confidence": max((r.get("confidence") or 0 for r in results.values()), default=0),
        }
