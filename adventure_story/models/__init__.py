# SPDX-License-Identifier: MIT
"""Models and type definitions for the adventure story server."""

from .types import (
    AnimeInfo, AniListInfo, MangaDexInfo, ChapterInfo,
    StoryInfo, StoryArc, WorldBuilding, TimelineEvent, SearchResult, ValidationResult,
    CharacterData, LocationData,
    AdventureContext, AdventureEvent, AdventureState, PlotPoint, PlayerChoice,
)

__all__ = [
    "AnimeInfo", "AniListInfo", "MangaDexInfo", "ChapterInfo",
    "StoryInfo", "StoryArc", "WorldBuilding", "TimelineEvent", "SearchResult", "ValidationResult",
    "CharacterData", "LocationData",
    "AdventureContext", "AdventureEvent", "AdventureState", "PlotPoint", "PlayerChoice",
]
