# SPDX-License-Identifier: MIT
"""Core functionality for the adventure story server."""

from .cache import TTLCache, cache_key, cache_key_gql
from .config import Settings, load_settings
from .errors import AggregationError, AdventureNotFoundError, AIAgentError, ConfigError
from .fanout import gather_settled
from .http_client import http_get, http_post, json_or_none, err_payload
from .rate_limiter import RateLimiter
from .relevance import relevance_score, best_title_score, sort_by_relevance

__all__ = [
    "TTLCache", "cache_key", "cache_key_gql",
    "Settings", "load_settings",
    "AggregationError", "AdventureNotFoundError", "AIAgentError", "ConfigError",
    "gather_settled",
    "http_get", "http_post", "json_or_none", "err_payload",
    "RateLimiter",
    "relevance_score", "best_title_score", "sort_by_relevance",
]
