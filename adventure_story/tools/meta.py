# SPDX-License-Identifier: MIT
"""Metadata and health tools."""

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register meta tools with FastMCP."""

    async def health() -> str:
        """Health check endpoint."""
        return await dispatcher.call_text("health")

    async def about() -> str:
        """About information for the service."""
        return await dispatcher.call_text("about")

    mcp.tool()(health)
    mcp.tool()(about)
