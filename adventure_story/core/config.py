# SPDX-License-Identifier: MIT
"""Environment-driven configuration for the adventure story server."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConfigError

STORAGE_BACKENDS = ("sqlite", "memory")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    server_name: str = "adventure-story-server"
    server_version: str = "1.0.0"

    # Upstream endpoints
    jikan_api_base_url: str = "https://api.jikan.moe/v4"
    anilist_api_url: str = "https://graphql.anilist.co"
    mangadex_api_url: str = "https://api.mangadex.org"
    fandom_api_url: str = "https://{wiki}.fandom.com/api.php"
    openrouter_api_url: str = "https://openrouter.ai/api/v1"
    openrouter_api_key: Optional[str] = field(default=None, repr=False)
    openrouter_model: str = "moonshotai/kimi-k2:free"

    # Cache
    cache_ttl_seconds: int = 3600
    cache_max_entries: int = 1000

    # Persistence
    storage_backend: str = "sqlite"
    database_path: str = "./data/stories.db"
    story_cache_ttl_hours: int = 24

    # Rate limiting (milliseconds between calls, per source)
    jikan_rate_limit_delay: int = 1000
    anilist_rate_limit_delay: int = 1000
    mangadex_rate_limit_delay: int = 200
    wiki_rate_limit_delay: int = 500
    ai_rate_limit_delay: int = 1000

    # Network
    request_timeout_seconds: int = 15
    max_retries: int = 3
    retry_delay_ms: int = 1000

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        d = cls()
        return cls(
            server_name=os.getenv("MCP_SERVER_NAME", d.server_name),
            server_version=os.getenv("MCP_SERVER_VERSION", d.server_version),
            jikan_api_base_url=os.getenv("JIKAN_API_BASE_URL", d.jikan_api_base_url),
            anilist_api_url=os.getenv("ANILIST_API_URL", d.anilist_api_url),
            mangadex_api_url=os.getenv("MANGADEX_API_URL", d.mangadex_api_url),
            fandom_api_url=os.getenv("FANDOM_API_URL", d.fandom_api_url),
            openrouter_api_url=os.getenv("OPENROUTER_API_URL", d.openrouter_api_url),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
            openrouter_model=os.getenv("OPENROUTER_MODEL", d.openrouter_model),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", d.cache_ttl_seconds),
            cache_max_entries=_env_int("CACHE_MAX_ENTRIES", d.cache_max_entries),
            storage_backend=os.getenv("STORAGE_BACKEND", d.storage_backend).lower(),
            database_path=os.getenv("DATABASE_PATH", d.database_path),
            story_cache_ttl_hours=_env_int("STORY_CACHE_TTL_HOURS", d.story_cache_ttl_hours),
            jikan_rate_limit_delay=_env_int("JIKAN_RATE_LIMIT_DELAY", d.jikan_rate_limit_delay),
            anilist_rate_limit_delay=_env_int("ANILIST_RATE_LIMIT_DELAY", d.anilist_rate_limit_delay),
            mangadex_rate_limit_delay=_env_int("MANGADEX_RATE_LIMIT_DELAY", d.mangadex_rate_limit_delay),
            wiki_rate_limit_delay=_env_int("WIKI_RATE_LIMIT_DELAY", d.wiki_rate_limit_delay),
            ai_rate_limit_delay=_env_int("AI_RATE_LIMIT_DELAY", d.ai_rate_limit_delay),
            request_timeout_seconds=_env_int("REQUEST_TIMEOUT_SECONDS", d.request_timeout_seconds),
            max_retries=_env_int("MAX_RETRIES", d.max_retries),
            retry_delay_ms=_env_int("RETRY_DELAY_MS", d.retry_delay_ms),
            log_level=os.getenv("LOG_LEVEL", d.log_level).upper(),
        )

    def validate(self) -> "Settings":
        """Raise ConfigError listing every invalid value; returns self otherwise."""
        errors: List[str] = []
        if self.cache_ttl_seconds <= 0:
            errors.append("CACHE_TTL_SECONDS must be greater than 0")
        if self.cache_max_entries <= 0:
            errors.append("CACHE_MAX_ENTRIES must be greater than 0")
        if self.story_cache_ttl_hours <= 0:
            errors.append("STORY_CACHE_TTL_HOURS must be greater than 0")
        for name in ("jikan", "anilist", "mangadex", "wiki", "ai"):
            if getattr(self, f"{name}_rate_limit_delay") < 0:
                errors.append(f"{name.upper()}_RATE_LIMIT_DELAY must be greater than or equal to 0")
        if self.request_timeout_seconds <= 0:
            errors.append("REQUEST_TIMEOUT_SECONDS must be greater than 0")
        if self.max_retries < 0:
            errors.append("MAX_RETRIES must be greater than or equal to 0")
        if self.retry_delay_ms < 0:
            errors.append("RETRY_DELAY_MS must be greater than or equal to 0")
        if self.storage_backend not in STORAGE_BACKENDS:
            errors.append(f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}")
        if errors:
            raise ConfigError("Environment configuration errors:\n" + "\n".join(errors))
        return self


def load_settings() -> Settings:
    return Settings.from_env().validate()
