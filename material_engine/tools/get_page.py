"""
MCP Tool - get_page

Retrieve a page record through the page cache.
"""

from typing import Optional

from fastmcp import FastMCP

from material_engine.schemas import PageReference
from material_engine.tools.context import current_session, page_summary

router = FastMCP("get_page")


async def get_page(
    page_id: str,
    material_id: Optional[str] = None,
) -> dict:
    """
    Get a page of a material.

    Served from the session cache when the page was loaded before.

    Args:
        page_id: Page ID
        material_id: Material ID (default: the current material)

    Returns:
        Page title, hierarchy, lock state and scores
    """
    session = current_session()
    ref = PageReference(material_id=material_id, page_id=page_id) if material_id else page_id

    page = await session.loader.get_page(ref)
    if page is None:
        return {"error": f"Page {page_id} not available"}

    return page_summary(page)


router.tool()(get_page)
