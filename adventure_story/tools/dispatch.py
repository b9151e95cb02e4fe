# SPDX-License-Identifier: MIT
"""
Tool catalog and dispatcher.

Every MCP tool goes through `ToolDispatcher.call`, which checks the name and
the required arguments, runs the handler and wraps the result as MCP text
content. The FastMCP wrappers in the sibling modules are thin typed fronts
over this.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData

from ..core.http_client import SCHEMA, err_payload
from ..services import Services

logger = logging.getLogger(__name__)

CONTEXT_SET_MESSAGE = "Adventure context set successfully"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    description: str = ""


CATALOG: Tuple[ToolSpec, ...] = (
    # story
    ToolSpec("get_story_info", ("source_name",), ("setting", "arc"),
             "Get comprehensive information about a story including plot, world-building and setting details"),
    ToolSpec("get_character_data", ("character_name", "source_name"), ("arc_context",),
             "Get detailed information about a character including abilities, personality and relationships"),
    ToolSpec("get_location_data", ("location_name", "source_name"), ("time_period",),
             "Get detailed information about a location within a story"),
    ToolSpec("get_timeline_events", ("source_name",), ("arc_name", "episode_range", "chapter_range"),
             "Get chronological events from an arc or an episode/chapter range"),
    ToolSpec("search_story_content", ("source_name", "query"), ("content_type",),
             "Search for characters, locations, events or abilities within a story"),
    ToolSpec("validate_story_element", ("source_name", "element_type", "element_name"), ("context",),
             "Validate that a story element exists in the canonical source"),
    # adventure
    ToolSpec("set_adventure_context", ("adventure_id", "source_name"),
             ("current_arc", "active_characters", "story_state"),
             "Set the current context and state for an adventure"),
    ToolSpec("get_adventure_state", ("adventure_id",), (),
             "Get the current state and context of an ongoing adventure"),
    ToolSpec("record_player_choice", ("adventure_id", "choice"), ("consequences",),
             "Record a player choice and its consequences in an adventure"),
    ToolSpec("list_adventures", (), (), "List stored adventures, most recently updated first"),
    # manga
    ToolSpec("get_manga_info", ("manga_name",), ("include_chapters", "language"),
             "Get manga information from MangaDex and AniList"),
    ToolSpec("get_manga_chapters", ("manga_name",), ("chapter_range", "translated_language"),
             "Get the chapter list of a manga"),
    ToolSpec("compare_adaptations", ("source_name",), ("focus_area",),
             "Compare the anime and manga adaptations of a story"),
    ToolSpec("get_popular_content", (), ("content_type", "time_period", "limit"),
             "Get popular or trending anime and manga"),
    ToolSpec("validate_canon", ("source_name", "element_description"), ("adaptation_type",),
             "Check whether an element is canonical in the anime and/or manga"),
    # ai
    ToolSpec("ai_analyze_story", ("source_name", "source_data"), ("analysis_type",),
             "Use the AI agent to analyze and synthesize story information from multiple sources"),
    ToolSpec("ai_validate_canon", ("source_name", "element_description", "search_results"), ("validation_level",),
             "Use the AI agent to validate canonical accuracy of story elements"),
    ToolSpec("ai_enhance_search", ("query", "source_name", "raw_results"), ("enhancement_type",),
             "Use the AI agent to enhance and rank search results"),
    ToolSpec("ai_generate_roleplay_context", ("adventure_id", "adventure_data"), ("user_choices", "context_depth"),
             "Generate enhanced roleplay context for an adventure"),
    ToolSpec("ai_analyze_character", ("character_name", "source_name", "source_data"), ("analysis_focus",),
             "Use the AI agent to analyze character data from multiple sources"),
    # meta
    ToolSpec("health", (), (), "Health check"),
    ToolSpec("about", (), (), "Server name, version, upstream endpoints and limits"),
    ToolSpec("cache_info", (), (), "Response cache statistics"),
    ToolSpec("cache_clear", (), (), "Clear the response cache"),
)

TOOLS: Dict[str, ToolSpec] = {t.name: t for t in CATALOG}


def _missing(value: Any) -> bool:
    return value is None or value == ""


def required_message(names: Tuple[str, ...]) -> str:
    if len(names) == 1:
        return f"{names[0]} is required"
    if len(names) == 2:
        return f"{names[0]} and {names[1]} are required"
    return f"{', '.join(names[:-1])}, and {names[-1]} are required"


def text_content(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


class ToolDispatcher:
    def __init__(self, services: Services):
        self.services = services

    def list_tools(self) -> List[ToolSpec]:
        return list(CATALOG)

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        spec = TOOLS.get(name)
        if spec is None:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

        args = dict(arguments or {})
        if any(_missing(args.get(a)) for a in spec.required):
            raise McpError(ErrorData(code=INVALID_PARAMS, message=required_message(spec.required)))

        known = {k: v for k, v in args.items()
                 if k in spec.required or (k in spec.optional and v is not None)}
        handler = getattr(self, f"_{name}")
        try:
            result = await handler(**known)
        except McpError:
            raise
        except Exception as e:
            logger.exception("Tool %s failed", name)
            raise McpError(ErrorData(code=INTERNAL_ERROR, message=f"Error executing tool {name}: {e}")) from e

        if isinstance(result, str):
            return text_content(result)
        return text_content(json.dumps(result, indent=2, ensure_ascii=False))

    async def call_text(self, name: str, **arguments) -> str:
        """Call a tool and return just its text payload (for FastMCP wrappers).

        Protocol errors are returned as an `err_payload` with the JSON-RPC
        code and message.
        """
        try:
            result = await self.call(name, arguments)
        except McpError as e:
            payload = err_payload(name, e.error.code, e.error.message)
            return json.dumps(payload, indent=2, ensure_ascii=False)
        return result["content"][0]["text"]

    # story

    async def _get_story_info(self, source_name, setting=None, arc=None):
        return await self.services.story.get_story_info(source_name, setting, arc)

    async def _get_character_data(self, character_name, source_name, arc_context=None):
        return await self.services.characters.get_character_data(character_name, source_name, arc_context)

    async def _get_location_data(self, location_name, source_name, time_period=None):
        return await self.services.locations.get_location_data(location_name, source_name, time_period)

    async def _get_timeline_events(self, source_name, arc_name=None, episode_range=None, chapter_range=None):
        return await self.services.story.get_timeline_events(source_name, arc_name, episode_range, chapter_range)

    async def _search_story_content(self, source_name, query, content_type=None):
        return await self.services.story.search_story_content(source_name, query, content_type)

    async def _validate_story_element(self, source_name, element_type, element_name, context=None):
        return await self.services.story.validate_story_element(source_name, element_type, element_name, context)

    # adventure

    async def _set_adventure_context(self, adventure_id, source_name, current_arc=None,
                                     active_characters=None, story_state=None):
        await self.services.adventure.set_adventure_context(
            adventure_id, source_name, current_arc, active_characters, story_state)
        return CONTEXT_SET_MESSAGE

    async def _get_adventure_state(self, adventure_id):
        return await self.services.adventure.get_adventure_state(adventure_id)

    async def _record_player_choice(self, adventure_id, choice, consequences=None):
        return await self.services.adventure.add_player_choice(adventure_id, choice, consequences)

    async def _list_adventures(self):
        return await self.services.adventure.list_adventures()

    # manga

    async def _get_manga_info(self, manga_name, include_chapters=False, language="en"):
        return await self.services.manga.get_manga_info(manga_name, bool(include_chapters), language)

    async def _get_manga_chapters(self, manga_name, chapter_range=None, translated_language="en"):
        return await self.services.manga.get_manga_chapters(manga_name, chapter_range, translated_language)

    async def _compare_adaptations(self, source_name, focus_area="all"):
        return await self.services.manga.compare_adaptations(source_name, focus_area)

    async def _get_popular_content(self, content_type="both", time_period="current", limit=20):
        return await self.services.manga.get_popular_content(content_type, time_period, int(limit))

    async def _validate_canon(self, source_name, element_description, adaptation_type="both"):
        return await self.services.manga.validate_canon(source_name, element_description, adaptation_type)

    # ai

    async def _ai_analyze_story(self, source_name, source_data, analysis_type="comprehensive"):
        return await self.services.ai.analyze_story_data(source_name, source_data, analysis_type)

    async def _ai_validate_canon(self, source_name, element_description, search_results,
                                 validation_level="moderate"):
        return await self.services.ai.validate_canonical_accuracy(
            element_description, source_name, search_results, validation_level)

    async def _ai_enhance_search(self, query, source_name, raw_results, enhancement_type="comprehensive"):
        return await self.services.ai.enhance_search_results(query, source_name, raw_results, enhancement_type)

    async def _ai_generate_roleplay_context(self, adventure_id, adventure_data, user_choices=None,
                                            context_depth="detailed"):
        if user_choices is None:
            # fall back to the choices already recorded for this adventure
            context = await self.services.adventure.get_context(adventure_id)
            user_choices = ((context or {}).get("story_state") or {}).get("player_choices") or []
        return await self.services.ai.generate_adventure_context(adventure_data, user_choices, context_depth)

    async def _ai_analyze_character(self, character_name, source_name, source_data,
                                    analysis_focus="comprehensive"):
        return await self.services.ai.analyze_character_data(character_name, source_name, source_data, analysis_focus)

    # meta

    async def _health(self):
        try:
            await self.services.adventure.list_adventures()
        except Exception as e:
            logger.warning("Storage health check failed: %s", e)
            payload = err_payload("storage", "UNAVAILABLE", str(e))
            payload["ok"] = False
            return payload
        return {
            "schemaVersion": SCHEMA,
            "ok": True,
            "sources": ["jikan", "anilist", "mangadex", "wiki"],
            "ai": self.services.openrouter.configured,
        }

    async def _about(self):
        s = self.services.settings
        return {
            "schemaVersion": SCHEMA,
            "name": s.server_name,
            "version": s.server_version,
            "endpoints": {
                "jikan": s.jikan_api_base_url,
                "anilist": s.anilist_api_url,
                "mangadex": s.mangadex_api_url,
                "wiki": s.fandom_api_url,
                "openrouter": s.openrouter_api_url,
            },
            "limits": {
                "timeoutSec": s.request_timeout_seconds,
                "maxRetries": s.max_retries,
                "rateLimits": self.services.limiter_stats(),
            },
            "tools": [t.name for t in CATALOG],
        }

    async def _cache_info(self):
        info = self.services.cache.stats()
        info["schemaVersion"] = SCHEMA
        return info

    async def _cache_clear(self):
        return {"schemaVersion": SCHEMA, "cleared": self.services.cache.flush()}
