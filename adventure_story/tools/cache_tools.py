# SPDX-License-Identifier: MIT
"""Cache management tools."""

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register cache-related tools with FastMCP."""

    async def cache_info() -> str:
        """Hit/miss counters and size of the response cache."""
        return await dispatcher.call_text("cache_info")

    async def cache_clear() -> str:
        """Drop every cached response."""
        return await dispatcher.call_text("cache_clear")

    mcp.tool()(cache_info)
    mcp.tool()(cache_clear)
