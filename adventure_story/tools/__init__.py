# SPDX-License-Identifier: MIT
"""MCP tool modules; each provides register_tools(mcp, dispatcher)."""

from .dispatch import CATALOG, ToolDispatcher, ToolSpec

__all__ = ["CATALOG", "ToolDispatcher", "ToolSpec"]
