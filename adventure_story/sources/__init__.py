# SPDX-License-Identifier: MIT
"""Upstream API fetchers, one per source."""

from .anilist import AniListFetcher
from .base import SourceFetcher
from .jikan import JikanFetcher
from .mangadex import MangaDexFetcher
from .openrouter import OpenRouterClient
from .wiki import WikiFetcher, WIKI_MAPPINGS, wiki_name

__all__ = [
    "SourceFetcher",
    "JikanFetcher", "AniListFetcher", "MangaDexFetcher", "WikiFetcher", "OpenRouterClient",
    "WIKI_MAPPINGS", "wiki_name",
]
