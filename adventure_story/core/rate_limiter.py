# SPDX-License-Identifier: MIT
"""Fixed-delay rate limiter, one instance per upstream source."""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Enforce a minimum gap between consecutive calls to one upstream.

    `acquire()` returns once at least `delay` seconds have passed since the
    previous `acquire()` returned. Waiters are released in call order because
    asyncio.Lock wakes them FIFO.
    """

    def __init__(self, delay: float, name: str = "", clock=time.monotonic):
        self.delay = max(0.0, float(delay))
        self.name = name
        self._clock = clock
        self._last_call: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None
        self.total_calls = 0
        self.total_wait = 0.0

    @classmethod
    def from_millis(cls, delay_ms: int, name: str = "") -> "RateLimiter":
        return cls(delay_ms / 1000.0, name=name)

    async def acquire(self) -> None:
        # Created lazily so the lock binds to the running loop.
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._last_call is not None:
                wait = self.delay - (self._clock() - self._last_call)
                if wait > 0:
                    logger.debug("rate limiter %s waiting %.3fs", self.name, wait)
                    self.total_wait += wait
                    await asyncio.sleep(wait)
            self._last_call = self._clock()
            self.total_calls += 1

    def stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "delaySec": self.delay,
            "calls": self.total_calls,
            "totalWaitSec": round(self.total_wait, 3),
        }
