# SPDX-License-Identifier: MIT
"""Adventure context tools."""

from typing import Any, Dict, List, Optional

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register adventure state tools with FastMCP."""

    async def set_adventure_context(adventure_id: str, source_name: str, current_arc: Optional[str] = None,
                                    active_characters: Optional[List[str]] = None,
                                    story_state: Optional[Dict[str, Any]] = None) -> str:
        """Create or replace the context of an adventure (last write wins)."""
        return await dispatcher.call_text("set_adventure_context", adventure_id=adventure_id,
                                          source_name=source_name, current_arc=current_arc,
                                          active_characters=active_characters, story_state=story_state)

    async def get_adventure_state(adventure_id: str) -> str:
        """Context, ten most recent events and AI context for an adventure; null if unknown."""
        return await dispatcher.call_text("get_adventure_state", adventure_id=adventure_id)

    async def record_player_choice(adventure_id: str, choice: str,
                                   consequences: Optional[List[str]] = None) -> str:
        return await dispatcher.call_text("record_player_choice", adventure_id=adventure_id, choice=choice,
                                          consequences=consequences)

    async def list_adventures() -> str:
        return await dispatcher.call_text("list_adventures")

    mcp.tool()(set_adventure_context)
    mcp.tool()(get_adventure_state)
    mcp.tool()(record_player_choice)
    mcp.tool()(list_adventures)
