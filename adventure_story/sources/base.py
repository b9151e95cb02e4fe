# SPDX-License-Identifier: MIT
"""Shared plumbing for upstream source fetchers."""

from typing import Any, Optional

from ..core.http_client import http_get, http_post, json_or_none, DEFAULT_TIMEOUT, MAX_RETRIES, RATE_LIMIT_BACKOFF
from ..core.rate_limiter import RateLimiter


class SourceFetcher:
    """One upstream API: owns its rate limiter and retry settings."""

    name = "source"
    backoff = RATE_LIMIT_BACKOFF

    def __init__(self, base_url: str, limiter: Optional[RateLimiter] = None,
                 timeout: int = DEFAULT_TIMEOUT, max_retries: int = MAX_RETRIES,
                 backoff: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter or RateLimiter(0, name=self.name)
        self.timeout = timeout
        self.max_retries = max_retries
        if backoff is not None:
            self.backoff = backoff

    async def _get_json(self, url: str, params: Optional[dict] = None, **kw) -> Optional[Any]:
        r = await http_get(url, params=params, limiter=self.limiter, timeout=self.timeout,
                           max_retries=self.max_retries, backoff=self.backoff, **kw)
        return json_or_none(r)

    async def _post_json(self, url: str, payload: dict, **kw) -> Optional[Any]:
        r = await http_post(url, json=payload, limiter=self.limiter, timeout=self.timeout,
                            max_retries=self.max_retries, backoff=self.backoff, **kw)
        return json_or_none(r)
