# SPDX-License-Identifier: MIT
"""Cache-through aggregation shared by the entity services."""

import logging
from typing import Any, Awaitable, Callable, Optional

from ..core.cache import TTLCache
from ..core.errors import AggregationError

logger = logging.getLogger(__name__)


class AggregationService:
    def __init__(self, cache: Optional[TTLCache] = None):
        self.cache = cache if cache is not None else TTLCache()

    async def _aggregate(self, key: str, compute: Callable[[], Awaitable[Any]], what: str) -> Any:
        """Return the cached value for `key` or compute, cache and return it.

        Source failures are absorbed inside `compute`; anything that escapes
        it is reported as AggregationError and nothing is cached.
        """
        try:
            return await self.cache.get_or_set(key, compute)
        except AggregationError:
            raise
        except Exception as e:
            logger.exception("aggregation failed for %s", key)
            raise AggregationError(f"Failed to fetch {what}") from e
