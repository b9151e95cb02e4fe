# SPDX-License-Identifier: MIT
"""Heuristic relevance scoring for search results."""

from typing import Iterable, Optional


def relevance_score(title: str, query: str) -> float:
    t = (title or "").lower()
    q = (query or "").lower()

    if t == q:
        return 1.0
    if t.startswith(q):
        return 0.9
    if q in t:
        return 0.7
    # shorter titles contained in a longer query
    if t and t in q:
        return 0.6

    title_words = t.split()
    query_words = q.split()
    matching = [w for w in title_words if any(w in qw or qw in w for qw in query_words)]
    if matching:
        return min(0.5, len(matching) / max(len(title_words), len(query_words)))
    return 0.1


def best_title_score(titles: Iterable[Optional[str]], query: str) -> float:
    """Score over several title variants: exact, prefix or substring only."""
    q = (query or "").lower()
    for t in (x.lower() for x in titles if x):
        if t == q:
            return 1.0
        if t.startswith(q):
            return 0.9
        if q in t:
            return 0.7
    return 0.1


def sort_by_relevance(results: list) -> list:
    """Stable sort, highest relevanceScore first."""
    return sorted(results, key=lambda r: r.get("relevanceScore", 0), reverse=True)
