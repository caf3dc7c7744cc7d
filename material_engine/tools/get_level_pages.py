"""
MCP Tool - get_level_pages

List the sibling level of a page.
"""

from fastmcp import FastMCP

from material_engine.tools.context import current_session, page_summary

router = FastMCP("get_level_pages")


async def get_level_pages(page_id: str) -> dict:
    """
    Get the pages on the same level as a page, in reading order.

    Args:
        page_id: Page ID in the current material

    Returns:
        Ordered list of sibling pages
    """
    session = current_session()
    pages = await session.loader.get_level_pages(page_id)
    return {
        "page_id": page_id,
        "pages": [page_summary(page) for page in pages],
    }


router.tool()(get_level_pages)
