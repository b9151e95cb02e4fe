# SPDX-License-Identifier: MIT
"""Story, character, location and timeline tools."""

from typing import Optional

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register story lookup tools with FastMCP."""

    async def get_story_info(source_name: str, setting: Optional[str] = None, arc: Optional[str] = None) -> str:
        """
        Plot, world-building and setting for a story (e.g. "One Piece", "Naruto").
        `setting` overrides the world setting; `arc` narrows to one arc.
        """
        return await dispatcher.call_text("get_story_info", source_name=source_name, setting=setting, arc=arc)

    async def get_character_data(character_name: str, source_name: str, arc_context: Optional[str] = None) -> str:
        """Abilities, personality, relationships and status of a character, optionally at a given arc."""
        return await dispatcher.call_text("get_character_data", character_name=character_name,
                                          source_name=source_name, arc_context=arc_context)

    async def get_location_data(location_name: str, source_name: str, time_period: Optional[str] = None) -> str:
        """Details of a place within a story (e.g. "Konoha Village", "Wall Maria")."""
        return await dispatcher.call_text("get_location_data", location_name=location_name,
                                          source_name=source_name, time_period=time_period)

    async def get_timeline_events(source_name: str, arc_name: Optional[str] = None,
                                  episode_range: Optional[str] = None,
                                  chapter_range: Optional[str] = None) -> str:
        """Chronological events. Ranges look like "1-10" (episodes) or "100-120" (chapters)."""
        return await dispatcher.call_text("get_timeline_events", source_name=source_name, arc_name=arc_name,
                                          episode_range=episode_range, chapter_range=chapter_range)

    async def search_story_content(source_name: str, query: str, content_type: Optional[str] = None) -> str:
        """Search characters, locations, events or abilities within a story."""
        return await dispatcher.call_text("search_story_content", source_name=source_name, query=query,
                                          content_type=content_type)

    async def validate_story_element(source_name: str, element_type: str, element_name: str,
                                     context: Optional[str] = None) -> str:
        """Check that an element (character, location, ability...) exists in the source."""
        return await dispatcher.call_text("validate_story_element", source_name=source_name,
                                          element_type=element_type, element_name=element_name, context=context)

    mcp.tool()(get_story_info)
    mcp.tool()(get_character_data)
    mcp.tool()(get_location_data)
    mcp.tool()(get_timeline_events)
    mcp.tool()(search_story_content)
    mcp.tool()(validate_story_element)
