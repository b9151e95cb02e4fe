# SPDX-License-Identifier: MIT
"""
Adventure Story MCP server entrypoint.

Wires FastMCP with all tool modules under adventure_story/tools/.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .core.config import Settings, load_settings
from .services import Services
from .tools import ToolDispatcher
# Import tool modules (each provides register_tools(mcp, dispatcher))
from .tools import story, adventure, manga, ai_agent, cache_tools, meta

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastMCP:
    if services is None:
        settings = settings or load_settings()
        services = Services.from_settings(settings)
    settings = services.settings

    mcp = FastMCP(settings.server_name)
    dispatcher = ToolDispatcher(services)

    # Register tools from each module
    story.register_tools(mcp, dispatcher)
    adventure.register_tools(mcp, dispatcher)
    manga.register_tools(mcp, dispatcher)
    ai_agent.register_tools(mcp, dispatcher)
    cache_tools.register_tools(mcp, dispatcher)
    meta.register_tools(mcp, dispatcher)

    return mcp


def main() -> None:
    settings = load_settings()
    # stdout carries the stdio transport
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    services = Services.from_settings(settings)
    app = create_app(services=services)
    logger.info("%s v%s running on stdio", settings.server_name, settings.server_version)
    try:
        app.run()
    finally:
        services.close()


if __name__ == "__main__":
    main()
