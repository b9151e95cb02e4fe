# SPDX-License-Identifier: MIT
"""Fandom (MediaWiki api.php) fetcher."""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.normalizers import clean_description
from ..models.types import SearchResult, TimelineEvent
from . import wikitext
from .base import SourceFetcher

logger = logging.getLogger(__name__)

WIKI_MAPPINGS = {
    "one piece": "onepiece",
    "naruto": "naruto",
    "dragon ball": "dragonball",
    "attack on titan": "shingekinokyojin",
    "demon slayer": "kimetsu-no-yaiba",
    "my hero academia": "bokunoheroacademia",
    "jujutsu kaisen": "jujutsu-kaisen",
    "bleach": "bleach",
    "fullmetal alchemist": "fma",
    "death note": "deathnote",
    "hunter x hunter": "hunterxhunter",
}

SEARCH_LIMIT = 20
LOCATION_CATEGORIES = (
    "Category:Locations",
    "Category:Places",
    "Category:Islands",
    "Category:Cities",
    "Category:Villages",
)


def wiki_name(source_name: str) -> Optional[str]:
    return WIKI_MAPPINGS.get((source_name or "").lower().strip())


class WikiFetcher(SourceFetcher):
    name = "wiki"

    def api_url(self, wiki: str) -> str:
        return self.base_url.replace("{wiki}", wiki)

    async def _query(self, wiki: str, **params) -> Dict[str, Any]:
        payload = await self._get_json(self.api_url(wiki), params={"action": "query", "format": "json", **params})
        return (payload or {}).get("query") or {}

    async def fetch_page(self, wiki: str, title: str) -> Optional[Dict[str, Any]]:
        """Intro extract plus raw wikitext, or None when the page is missing."""
        pages = (await self._query(
            wiki,
            titles=title,
            prop="extracts|images|pageimages",
            exintro=1,
            explaintext=1,
            exsectionformat="wiki",
            piprop="thumbnail",
        )).get("pages") or {}
        if not pages:
            return None

        page_id, page = next(iter(pages.items()))
        if str(page_id) == "-1" or "missing" in page:
            return None

        content_pages = (await self._query(
            wiki, pageids=page_id, prop="revisions", rvprop="content", rvslots="main",
        )).get("pages") or {}
        revisions = (content_pages.get(str(page_id)) or {}).get("revisions") or [{}]
        content = ((revisions[0].get("slots") or {}).get("main") or {}).get("*") or ""

        thumb = (page.get("thumbnail") or {}).get("source")
        images = ([thumb] if thumb else []) + [i.get("title") for i in page.get("images") or [] if i.get("title")]
        return {
            "title": page.get("title") or title,
            "extract": page.get("extract") or "",
            "content": content,
            "images": images,
        }

    async def _page_for(self, source_name: str, title: str) -> Optional[Dict[str, Any]]:
        wiki = wiki_name(source_name)
        if not wiki:
            return None
        return await self.fetch_page(wiki, title)

    async def get_story_info(self, source_name: str) -> Optional[Dict[str, Any]]:
        wiki = wiki_name(source_name)
        if not wiki:
            raise LookupError(f"No wiki mapping found for {source_name}")

        page = await self.fetch_page(wiki, source_name)
        if page is None:
            return None
        info = wikitext.story_fields(page["content"])
        info["description"] = page["extract"]
        info["arcs"] = await self.get_story_arcs(wiki, source_name)
        return info

    async def get_story_arcs(self, wiki: str, source_name: str) -> List[Dict[str, Any]]:
        for title in ("Story Arcs", f"{source_name} Story Arcs", "Arcs"):
            page = await self.fetch_page(wiki, title)
            if page is not None:
                return wikitext.story_arcs(page["content"])
        return []

    async def get_character_info(self, source_name: str, character_name: str) -> Optional[Dict[str, Any]]:
        page = await self._page_for(source_name, character_name)
        if page is None:
            return None
        info = wikitext.character_fields(page["content"])
        info["images"] = page["images"]
        return info

    async def get_location_info(self, source_name: str, location_name: str) -> Optional[Dict[str, Any]]:
        page = await self._page_for(source_name, location_name)
        if page is None:
            return None
        info = wikitext.location_fields(page["content"], page["extract"])
        info["images"] = page["images"]
        return info

    async def get_timeline_events(self, source_name: str, arc_name: Optional[str] = None) -> List[TimelineEvent]:
        wiki = wiki_name(source_name)
        if not wiki:
            return []

        titles = [
            f"{source_name} Timeline",
            f"{source_name} Episode List",
            f"{source_name} Chapter List",
            f"List of {source_name} episodes",
        ]
        if arc_name:
            titles.append(f"{arc_name} Arc")

        events: List[TimelineEvent] = []
        for title in titles:
            try:
                page = await self.fetch_page(wiki, title)
            except requests.RequestException as e:
                logger.warning("Could not fetch timeline from %s: %s", title, e)
                continue
            if page is not None:
                events.extend(wikitext.timeline_events(page["content"], arc_name))
        return events

    async def _search(self, wiki: str, query: str) -> List[SearchResult]:
        hits = (await self._query(wiki, list="search", srsearch=query, srlimit=SEARCH_LIMIT)).get("search") or []
        return [{
            "type": wikitext.content_type(hit.get("title") or ""),
            "name": hit.get("title") or "",
            "description": clean_description(hit.get("snippet")),
            "source": wiki,
            # search order is the only ranking signal
            "relevanceScore": (SEARCH_LIMIT - i) / SEARCH_LIMIT,
            "additionalInfo": {"wordcount": hit.get("wordcount"), "size": hit.get("size")},
        } for i, hit in enumerate(hits)]

    async def search_content(self, source_name: str, query: str, content_type: Optional[str] = None) -> List[SearchResult]:
        wiki = wiki_name(source_name)
        if not wiki:
            return []
        results = await self._search(wiki, query)
        if content_type and content_type != "all":
            results = [r for r in results if r["type"] == content_type]
        return results

    async def _typed_search(self, source_name: str, query: str, kind: str) -> List[Dict[str, Any]]:
        return [{"name": r["name"], "score": r["relevanceScore"], "basicInfo": r["additionalInfo"]}
                for r in await self.search_content(source_name, query, kind)]

    async def search_characters(self, source_name: str, query: str) -> List[Dict[str, Any]]:
        return await self._typed_search(source_name, query, "character")

    async def search_locations(self, source_name: str, query: str) -> List[Dict[str, Any]]:
        return await self._typed_search(source_name, query, "location")

    async def get_category_members(self, wiki: str, category: str) -> List[Dict[str, Any]]:
        return (await self._query(wiki, list="categorymembers", cmtitle=category, cmlimit=100)).get("categorymembers") or []

    async def get_all_locations(self, source_name: str) -> List[Dict[str, Any]]:
        wiki = wiki_name(source_name)
        if not wiki:
            return []

        locations: List[Dict[str, Any]] = []
        for category in LOCATION_CATEGORIES:
            try:
                locations.extend(await self.get_category_members(wiki, category))
            except requests.RequestException as e:
                logger.warning("Could not fetch category %s: %s", category, e)
        return locations
