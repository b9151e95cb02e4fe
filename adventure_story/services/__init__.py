# SPDX-License-Identifier: MIT
"""Aggregation services over the upstream sources."""

from .adventure import AdventureService
from .ai_agent import AIAgentService
from .characters import CharacterService
from .container import Services
from .locations import LocationService
from .manga import MangaService
from .story import StoryService

__all__ = [
    "Services",
    "StoryService", "CharacterService", "LocationService",
    "AdventureService", "MangaService", "AIAgentService",
]
