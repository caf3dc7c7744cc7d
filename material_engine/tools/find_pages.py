"""
MCP Tool - find_pages

Search pages of a material.
"""

from fastmcp import FastMCP

from material_engine.tools.context import current_session

router = FastMCP("find_pages")


async def find_pages(query: str, material_id: str) -> dict:
    """
    Find pages of a material matching a query.

    Args:
        query: Free text query
        material_id: Material ID

    Returns:
        Search hits as served by the material API
    """
    results = await current_session().api.find_pages(material_id, query)
    return {"query": query, "results": results, "total_count": len(results)}


router.tool()(find_pages)
