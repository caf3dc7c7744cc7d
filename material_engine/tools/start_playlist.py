"""
MCP Tool - start_playlist

Switch navigation to a curated list of pages.
"""

from typing import Dict, List

from fastmcp import FastMCP

from material_engine.schemas import PlaylistEntry
from material_engine.tools.context import current_session

router = FastMCP("start_playlist")


async def start_playlist(pages: List[Dict[str, str]]) -> dict:
    """
    Start a playlist and move to its first page.

    Args:
        pages: Entries with materialId, pageId and optional relatedContentId

    Returns:
        Playlist length and the resulting current page id
    """
    if not pages:
        return {"error": "Playlist is empty"}

    session = current_session()
    entries = [PlaylistEntry.model_validate(page) for page in pages]
    if session.current_material_id is None:
        session.current_material_id = entries[0].material_id

    source = await session.navigation.start_playlist(entries)
    current = session.current_page
    return {
        "length": len(source.entries),
        "cursor": source.cursor,
        "current_page_id": current.id if current else None,
    }


router.tool()(start_playlist)
