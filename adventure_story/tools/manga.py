# SPDX-License-Identifier: MIT
"""Manga and adaptation tools."""

from typing import Optional

from .dispatch import ToolDispatcher


def register_tools(mcp, dispatcher: ToolDispatcher):
    """Register manga tools with FastMCP."""

    async def get_manga_info(manga_name: str, include_chapters: bool = False, language: str = "en") -> str:
        """Manga details from MangaDex and AniList; up to 50 chapters when include_chapters is set."""
        return await dispatcher.call_text("get_manga_info", manga_name=manga_name,
                                          include_chapters=include_chapters, language=language)

    async def get_manga_chapters(manga_name: str, chapter_range: Optional[str] = None,
                                 translated_language: str = "en") -> str:
        """Chapter list. chapter_range: "all", "latest" or "a-b"; translated_language "all" disables the filter."""
        return await dispatcher.call_text("get_manga_chapters", manga_name=manga_name,
                                          chapter_range=chapter_range, translated_language=translated_language)

    async def compare_adaptations(source_name: str, focus_area: str = "all") -> str:
        """Anime vs manga: characters, plot, timeline or differences (or all)."""
        return await dispatcher.call_text("compare_adaptations", source_name=source_name, focus_area=focus_area)

    async def get_popular_content(content_type: str = "both", time_period: str = "current", limit: int = 20) -> str:
        """
        Popular titles. content_type: anime | manga | both.
        time_period: current (trending) | seasonal | all_time.
        """
        return await dispatcher.call_text("get_popular_content", content_type=content_type,
                                          time_period=time_period, limit=limit)

    async def validate_canon(source_name: str, element_description: str, adaptation_type: str = "both") -> str:
        return await dispatcher.call_text("validate_canon", source_name=source_name,
                                          element_description=element_description,
                                          adaptation_type=adaptation_type)

    mcp.tool()(get_manga_info)
    mcp.tool()(get_manga_chapters)
    mcp.tool()(compare_adaptations)
    mcp.tool()(get_popular_content)
    mcp.tool()(validate_canon)
