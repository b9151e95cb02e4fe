# SPDX-License-Identifier: MIT
"""AI agent tools (OpenRouter). They fail with an internal error when no API key is set."""

from typing import Any, Dict, List, Optional

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register AI agent tools with FastMCP."""

    async def ai_analyze_story(source_name: str, source_data: List[Dict[str, Any]],
                               analysis_type: str = "comprehensive") -> str:
        """analysis_type: comprehensive | character_focused | plot_focused | world_building."""
        return await dispatcher.call_text("ai_analyze_story", source_name=source_name, source_data=source_data,
                                          analysis_type=analysis_type)

    async def ai_validate_canon(source_name: str, element_description: str, search_results: List[Dict[str, Any]],
                                validation_level: str = "moderate") -> str:
        """validation_level: strict | moderate | lenient."""
        return await dispatcher.call_text("ai_validate_canon", source_name=source_name,
                                          element_description=element_description,
                                          search_results=search_results, validation_level=validation_level)

    async def ai_enhance_search(query: str, source_name: str, raw_results: List[Dict[str, Any]],
                                enhancement_type: str = "comprehensive") -> str:
        return await dispatcher.call_text("ai_enhance_search", query=query, source_name=source_name,
                                          raw_results=raw_results, enhancement_type=enhancement_type)

    async def ai_generate_roleplay_context(adventure_id: str, adventure_data: Dict[str, Any],
                                           user_choices: Optional[List[Dict[str, Any]]] = None,
                                           context_depth: str = "detailed") -> str:
        """Without user_choices, the choices recorded for the adventure are used."""
        return await dispatcher.call_text("ai_generate_roleplay_context", adventure_id=adventure_id,
                                          adventure_data=adventure_data, user_choices=user_choices,
                                          context_depth=context_depth)

    async def ai_analyze_character(character_name: str, source_name: str, source_data: List[Dict[str, Any]],
                                   analysis_focus: str = "comprehensive") -> str:
        return await dispatcher.call_text("ai_analyze_character", character_name=character_name,
                                          source_name=source_name, source_data=source_data,
                                          analysis_focus=analysis_focus)

    mcp.tool()(ai_analyze_story)
    mcp.tool()(ai_validate_canon)
    mcp.tool()(ai_enhance_search)
    mcp.tool()(ai_generate_roleplay_context)
    mcp.tool()(ai_analyze_character)
