# SPDX-License-Identifier: MIT
"""HTTP client and network functions for the adventure story server."""

import asyncio
import logging
from typing import Any, Dict, Optional, Union

import requests

from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Constants
DEFAULT_TIMEOUT = 15
MAX_RETRIES = 3
RATE_LIMIT_BACKOFF = 3.0  # seconds before the first retry on 429
UA = "Adventure-Story-MCP-Server/1.0.0"
SCHEMA = "1.0.0"


async def _req(
    method: str,
    url: str,
    limiter: Optional[RateLimiter] = None,
    max_retries: int = MAX_RETRIES,
    backoff: float = RATE_LIMIT_BACKOFF,
    **kw,
) -> Optional[requests.Response]:
    """Issue one request, retrying only on 429.

    Returns None on 404. Any other status >= 400 raises requests.HTTPError;
    timeouts and connection errors propagate unchanged.
    """
    timeout = kw.pop("timeout", DEFAULT_TIMEOUT)
    headers = {"User-Agent": UA, **kw.pop("headers", {})}

    for attempt in range(max_retries + 1):
        if limiter is not None:
            await limiter.acquire()
        r = await asyncio.to_thread(requests.request, method, url, timeout=timeout, headers=headers, **kw)

        if r.status_code == 429 and attempt < max_retries:
            logger.warning("429 from %s, retrying in %.1fs (attempt %d/%d)",
                           url, backoff, attempt + 1, max_retries)
            await asyncio.sleep(backoff)
            backoff *= 2
            continue
        if r.status_code == 404:
            return None
        if r.status_code >= 400:
            raise requests.HTTPError(f"{r.status_code} upstream", response=r)
        return r


async def http_get(url: str, **kw) -> Optional[requests.Response]:
    return await _req("GET", url, **kw)


async def http_post(url: str, **kw) -> Optional[requests.Response]:
    return await _req("POST", url, **kw)


def json_or_none(r: Optional[requests.Response]) -> Optional[Any]:
    if r is None:
        return None
    return r.json()


def err_payload(source: str, code: Union[str, int], message: str) -> Dict[str, Any]:
    return {"schemaVersion": SCHEMA, "error": {"code": code, "message": message, "source": source}}
