# SPDX-License-Identifier: MIT
"""Data normalization functions for different API sources."""

import re
from typing import Any, Dict, List, Optional

from ..models.types import AnimeInfo, AniListInfo, ChapterInfo

_TAG_RE = re.compile(r"<[^>]*>")
_NEWLINES_RE = re.compile(r"\n+")


def clean_description(description: Optional[str]) -> str:
    """Strip HTML tags and collapse newline runs (AniList/Fandom markup)."""
    if not description:
        return ""
    text = _TAG_RE.sub("", description.replace("<br>", "\n"))
    return _NEWLINES_RE.sub("\n", text).strip()


def image_urls(images: Optional[Dict[str, Any]]) -> List[str]:
    """Flatten Jikan's {"jpg": {...}, "webp": {...}} image map into URLs."""
    out: List[str] = []
    for fmt in (images or {}).values():
        if isinstance(fmt, dict):
            out.extend(u for u in fmt.values() if isinstance(u, str) and u)
        elif isinstance(fmt, str) and fmt:
            out.append(fmt)
    return out


def names(items: Optional[List[Dict[str, Any]]], key: str = "name") -> List[str]:
    return [i.get(key) for i in (items or []) if i.get(key)]


# ---------- Jikan ----------

def norm_anime_from_jikan(a: Dict[str, Any]) -> AnimeInfo:
    return {
        "mal_id": a.get("mal_id"),
        "title": a.get("title") or "",
        "title_english": a.get("title_english"),
        "title_japanese": a.get("title_japanese"),
        "type": a.get("type") or "",
        "episodes": a.get("episodes"),
        "status": a.get("status") or "",
        "rating": a.get("rating") or "",
        "synopsis": a.get("synopsis") or "",
        "characters": [],
        "images": image_urls(a.get("images")),
        "genres": names(a.get("genres")),
        "themes": names(a.get("themes")),
        "studios": names(a.get("studios")),
        "year": a.get("year"),
    }


def norm_anime_character_from_jikan(item: Dict[str, Any]) -> Dict[str, Any]:
    c = item.get("character") or {}
    return {
        "mal_id": c.get("mal_id"),
        "name": c.get("name") or "",
        "role": item.get("role"),
        "favorites": c.get("favorites"),
        "images": image_urls(c.get("images")),
    }


# ---------- AniList ----------

def norm_title(t: Optional[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    t = t or {}
    return {"romaji": t.get("romaji"), "english": t.get("english"), "native": t.get("native")}


def norm_media_from_anilist(m: Dict[str, Any], detailed: Optional[Dict[str, Any]] = None) -> AniListInfo:
    """Normalize a search hit; character/studio lists come from the detail query."""
    detailed = detailed or {}
    title = norm_title(m.get("title"))
    cover = m.get("coverImage") or {}
    start = m.get("startDate") or {}
    chars = ((detailed.get("characters") or m.get("characters") or {}).get("nodes")) or []
    studios = ((detailed.get("studios") or m.get("studios") or {}).get("nodes")) or []
    return {
        "anilist_id": m.get("id"),
        "title": title["romaji"] or "",
        "title_english": title["english"],
        "title_native": title["native"],
        "description": clean_description(m.get("description")),
        "type": m.get("type") or "",
        "format": m.get("format"),
        "status": m.get("status"),
        "episodes": m.get("episodes"),
        "chapters": m.get("chapters"),
        "volumes": m.get("volumes"),
        "genres": m.get("genres") or [],
        "tags": names(m.get("tags")),
        "characters": [(c.get("name") or {}).get("full") for c in chars if (c.get("name") or {}).get("full")],
        "studios": names(studios),
        "images": [u for u in (cover.get("large"), m.get("bannerImage")) if u],
        "averageScore": m.get("averageScore"),
        "popularity": m.get("popularity"),
        "favourites": m.get("favourites"),
        "source": m.get("source"),
        "season": m.get("season"),
        "year": m.get("seasonYear") or start.get("year"),
        "startDate": start,
        "endDate": m.get("endDate") or {},
    }


def norm_character_from_anilist(c: Dict[str, Any], detailed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    detailed = detailed or {}
    name = c.get("name") or {}
    image = c.get("image") or {}
    return {
        "anilist_id": c.get("id"),
        "name": name.get("full") or "",
        "name_native": name.get("native"),
        "description": clean_description(detailed.get("description") or c.get("description")),
        "images": [u for u in (image.get("large"), image.get("medium")) if u],
        "favourites": c.get("favourites"),
        "dateOfBirth": detailed.get("dateOfBirth"),
        "age": detailed.get("age"),
        "gender": detailed.get("gender"),
        "bloodType": detailed.get("bloodType"),
        "appearances": (c.get("media") or {}).get("nodes") or [],
    }


# ---------- MangaDex ----------

def localized(obj: Optional[Dict[str, str]], *prefer: str) -> str:
    """Pick the first preferred language, else any value, else ''."""
    obj = obj or {}
    for lang in prefer:
        if obj.get(lang):
            return obj[lang]
    return next((v for v in obj.values() if v), "")


def mangadex_title(titles: Optional[Dict[str, str]]) -> str:
    return localized(titles, "en", "ja-ro", "ja_ro")


def mangadex_tags(attrs: Dict[str, Any], group: Optional[str] = None) -> List[str]:
    out = []
    for tag in attrs.get("tags") or []:
        ta = tag.get("attributes") or {}
        if group is None or ta.get("group") == group:
            name = mangadex_title(ta.get("name"))
            if name:
                out.append(name)
    return out


def norm_chapter_from_mangadex(ch: Dict[str, Any]) -> ChapterInfo:
    a = ch.get("attributes") or {}
    return {
        "id": ch.get("id"),
        "volume": a.get("volume"),
        "chapter": a.get("chapter"),
        "title": a.get("title"),
        "translatedLanguage": a.get("translatedLanguage") or "",
        "pages": a.get("pages") or 0,
        "publishAt": a.get("publishAt") or "",
        "readableAt": a.get("readableAt") or "",
    }
