# SPDX-License-Identifier: MIT
"""Type definitions for the adventure story server."""

from typing import Any, Dict, List, Optional, TypedDict


# ---------- Per-source records (every field may be missing) ----------

class AnimeInfo(TypedDict, total=False):
    mal_id: int
    title: str
    title_english: Optional[str]
    title_japanese: Optional[str]
    type: str
    episodes: Optional[int]
    status: str
    rating: str
    synopsis: str
    characters: List[str]
    images: List[str]
    genres: List[str]
    themes: List[str]
    studios: List[str]
    year: Optional[int]


class AniListInfo(TypedDict, total=False):
    anilist_id: int
    title: str
    title_english: Optional[str]
    title_native: Optional[str]
    description: str
    type: str
    format: Optional[str]
    status: Optional[str]
    episodes: Optional[int]
    chapters: Optional[int]
    volumes: Optional[int]
    genres: List[str]
    tags: List[str]
    characters: List[str]
    studios: List[str]
    images: List[str]
    averageScore: Optional[int]
    popularity: Optional[int]
    favourites: Optional[int]
    source: Optional[str]
    season: Optional[str]
    year: Optional[int]
    startDate: Dict[str, Optional[int]]
    endDate: Dict[str, Optional[int]]


class MangaDexInfo(TypedDict, total=False):
    mangadex_id: str
    title: str
    altTitles: List[str]
    description: str
    status: str
    originalLanguage: str
    publicationDemographic: Optional[str]
    contentRating: str
    year: Optional[int]
    lastVolume: Optional[str]
    lastChapter: Optional[str]
    tags: List[str]
    genres: List[str]
    themes: List[str]
    authors: List[str]
    artists: List[str]
    coverImage: Optional[str]
    links: Dict[str, str]


class ChapterInfo(TypedDict, total=False):
    id: str
    volume: Optional[str]
    chapter: Optional[str]
    title: Optional[str]
    translatedLanguage: str
    pages: int
    publishAt: str
    readableAt: str


# ---------- Unified records ----------

class WorldBuilding(TypedDict, total=False):
    setting: str
    timeType: str
    powerSystem: str
    importantLocations: List[str]
    mainOrganizations: List[str]


class StoryArc(TypedDict, total=False):
    name: str
    description: str
    episodes: str
    chapters: str
    keyEvents: List[str]


class StoryInfo(TypedDict):
    name: str
    type: str                      # anime/manga/novel/game/other
    description: str
    worldBuilding: WorldBuilding
    plotSummary: str
    mainCharacters: List[str]
    currentArc: Optional[str]
    arcs: List[StoryArc]
    lastUpdated: str


class TimelineEvent(TypedDict, total=False):
    episode: Optional[int]
    chapter: Optional[int]
    arc: str
    event: str
    characters: List[str]
    location: str
    significance: str
    consequences: List[str]


class SearchResult(TypedDict, total=False):
    type: str                      # character/location/ability/event/item/organization/anime/manga/other
    name: str
    description: str
    source: str
    relevanceScore: float
    additionalInfo: Dict[str, Any]


class ValidationResult(TypedDict, total=False):
    isValid: bool
    elementName: str
    elementType: str
    source: str
    confidence: float
    alternativeSuggestions: List[str]
    canonicalInfo: Dict[str, Any]


class CharacterData(TypedDict):
    name: str
    aliases: List[str]
    source: str
    appearance: Dict[str, Any]     # description, height?, age?, species?
    personality: Dict[str, Any]    # traits, description, alignment?
    abilities: Dict[str, Any]      # powers, skills, weapons, specialAbilities, powerLevel?
    relationships: Dict[str, Any]  # allies, enemies, family, romantic?, mentor?, students?
    backstory: Dict[str, Any]      # origin, keyEvents, development
    currentStatus: Dict[str, Any]  # alive, location?, occupation?, affiliation?, arc?
    quotes: List[str]
    images: List[str]
    lastUpdated: str


class LocationData(TypedDict):
    name: str
    aliases: List[str]
    source: str
    type: str                      # city/village/country/island/building/landmark/dimension/other
    description: str
    geography: Dict[str, Any]
    population: Dict[str, Any]
    features: Dict[str, Any]       # landmarks, importantBuildings, naturalFeatures, defenses?
    history: Dict[str, Any]        # founded?, keyEvents, previousNames?, significance
    connections: Dict[str, Any]    # parentLocation?, childLocations, neighboringAreas, accessMethods
    currentStatus: Dict[str, Any]  # condition, controlledBy?, timePeriod?, accessibility?
    notableResidents: List[str]
    images: List[str]
    lastUpdated: str


# ---------- Adventures ----------

class PlotPoint(TypedDict):
    id: str
    description: str
    status: str                    # pending/active/completed/failed
    importance: str                # low/medium/high/critical


class PlayerChoice(TypedDict):
    choice: str
    consequences: List[str]
    timestamp: str


class AdventureContext(TypedDict):
    adventure_id: str
    source_name: str
    current_arc: Optional[str]
    active_characters: List[str]
    story_state: Dict[str, Any]
    created_at: str
    updated_at: str


class AdventureEvent(TypedDict, total=False):
    type: str                      # choice/event/dialogue/system
    content: str
    characters: List[str]
    location: Optional[str]
    timestamp: str


class AdventureState(TypedDict):
    context: AdventureContext
    recent_events: List[AdventureEvent]
    ai_context: Dict[str, Any]
