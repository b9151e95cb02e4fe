# SPDX-License-Identifier: MIT
"""Field-merge helpers for unified records.

Sources are merged in a fixed priority order; a later source only fills
values that are still empty.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def fill(target: Dict[str, Any], key: str, value: Any) -> None:
    """Set an absent key; an empty value is only replaced by a non-empty one."""
    if key not in target:
        if value is not None:
            target[key] = value
    elif is_empty(target[key]) and not is_empty(value):
        target[key] = value


def fill_all(target: Dict[str, Any], source: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    for k, v in (source or {}).items():
        fill(target, k, v)
    return target


def union(*lists: Optional[Iterable[str]]) -> List[str]:
    """Concatenate, dropping duplicates and blanks, first occurrence wins."""
    out: List[str] = []
    seen = set()
    for items in lists:
        for item in items or []:
            if item and item not in seen:
                seen.add(item)
                out.append(item)
    return out


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
