# SPDX-License-Identifier: MIT
"""Helper functions for the adventure story server."""

import re
from typing import Optional, Tuple

_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$")


def season_from_month(m: int) -> str:
    """Get season name from month number (Jikan's lowercase form)."""
    if m in (12, 1, 2):
        return "winter"
    if m in (3, 4, 5):
        return "spring"
    if m in (6, 7, 8):
        return "summer"
    return "fall"


def parse_range(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """"a-b" -> (a, b); a single number n -> (n, n); anything else -> None."""
    m = _RANGE_RE.match(value or "")
    if not m:
        return None
    start = int(m.group(1))
    end = int(m.group(2)) if m.group(2) else start
    return start, end


def in_range(n: Optional[float], bounds: Tuple[int, int]) -> bool:
    return n is not None and bounds[0] <= n <= bounds[1]
