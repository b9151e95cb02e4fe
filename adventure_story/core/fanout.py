# SPDX-License-Identifier: MIT
"""Concurrent fan-out that waits for every branch to settle."""

import asyncio
import logging
from typing import Any, Awaitable, Dict

logger = logging.getLogger(__name__)


async def gather_settled(label: str, branches: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
    """Run all branches concurrently; a failed branch maps to None.

    Failures are logged with the branch name and never cancel siblings.
    Cancellation (a BaseException) is re-raised.
    """
    names = list(branches)
    results = await asyncio.gather(*branches.values(), return_exceptions=True)
    out: Dict[str, Any] = {}
    for name, res in zip(names, results):
        if isinstance(res, BaseException):
            if not isinstance(res, Exception):
                raise res
            logger.warning("%s: source %s failed: %s", label, name, res)
            out[name] = None
        else:
            out[name] = res
    return out
