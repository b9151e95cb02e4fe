# SPDX-License-Identifier: MIT
"""Process-wide wiring: one limiter and fetcher per source, one shared cache."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..core.cache import TTLCache
from ..core.config import Settings
from ..core.rate_limiter import RateLimiter
from ..sources import AniListFetcher, JikanFetcher, MangaDexFetcher, OpenRouterClient, WikiFetcher
from ..storage import AdventureStore, open_store
from .adventure import AdventureService
from .ai_agent import AIAgentService
from .characters import CharacterService
from .locations import LocationService
from .manga import MangaService
from .story import StoryService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    cache: TTLCache
    store: AdventureStore
    jikan: JikanFetcher
    anilist: AniListFetcher
    mangadex: MangaDexFetcher
    wiki: WikiFetcher
    openrouter: OpenRouterClient
    story: StoryService
    characters: CharacterService
    locations: LocationService
    adventure: AdventureService
    manga: MangaService
    ai: AIAgentService

    @classmethod
    def from_settings(cls, settings: Settings, store: Optional[AdventureStore] = None,
                      cache: Optional[TTLCache] = None) -> "Services":
        cache = cache if cache is not None else TTLCache(settings.cache_ttl_seconds, settings.cache_max_entries)
        if store is None:
            store = open_store(settings.storage_backend, settings.database_path)

        net = {"timeout": settings.request_timeout_seconds, "max_retries": settings.max_retries}
        retry_delay = settings.retry_delay_ms / 1000.0

        jikan = JikanFetcher(settings.jikan_api_base_url,
                             RateLimiter.from_millis(settings.jikan_rate_limit_delay, "jikan"), **net)
        anilist = AniListFetcher(settings.anilist_api_url,
                                 RateLimiter.from_millis(settings.anilist_rate_limit_delay, "anilist"), **net)
        mangadex = MangaDexFetcher(settings.mangadex_api_url,
                                   RateLimiter.from_millis(settings.mangadex_rate_limit_delay, "mangadex"), **net)
        wiki = WikiFetcher(settings.fandom_api_url,
                           RateLimiter.from_millis(settings.wiki_rate_limit_delay, "wiki"),
                           backoff=retry_delay, **net)
        openrouter = OpenRouterClient(
            settings.openrouter_api_url,
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            limiter=RateLimiter.from_millis(settings.ai_rate_limit_delay, "openrouter"),
            max_retries=settings.max_retries,
            backoff=retry_delay,
        )

        story = StoryService(jikan, anilist, wiki, mangadex, cache=cache, store=store,
                             store_ttl_hours=settings.story_cache_ttl_hours)
        logger.debug("services wired (storage=%s)", type(store).__name__)
        return cls(
            settings=settings,
            cache=cache,
            store=store,
            jikan=jikan,
            anilist=anilist,
            mangadex=mangadex,
            wiki=wiki,
            openrouter=openrouter,
            story=story,
            characters=CharacterService(wiki, jikan, anilist, cache=cache),
            locations=LocationService(wiki, cache=cache),
            adventure=AdventureService(store, cache=cache),
            manga=MangaService(mangadex, anilist, jikan, story, cache=cache),
            ai=AIAgentService(openrouter),
        )

    def limiter_stats(self) -> Dict[str, Dict]:
        return {f.name: f.limiter.stats() for f in (self.jikan, self.anilist, self.mangadex, self.wiki, self.openrouter)}

    def close(self) -> None:
        self.store.close()
