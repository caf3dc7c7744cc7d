"""
MCP Tools - change_page, next_page, previous_page

Move the session to another page.
"""

from typing import Optional

from fastmcp import FastMCP

from material_engine.schemas import PageChangeOptions, PageReference
from material_engine.tools.context import current_session, page_summary

router = FastMCP("change_page")


def _current() -> dict:
    page = current_session().current_page
    return {"current_page": page_summary(page) if page else None}


async def change_page(
    page_id: str,
    material_id: Optional[str] = None,
    add_to_history: bool = True,
) -> dict:
    """
    Change the displayed page.

    Hidden pages redirect to their first available child.

    Args:
        page_id: Target page ID
        material_id: Target material (default: the current material)
        add_to_history: Record the change as a new history entry

    Returns:
        Whether the change happened and the resulting current page
    """
    session = current_session()
    if material_id and session.current_material_id is None:
        session.current_material_id = material_id
    ref = PageReference(material_id=material_id, page_id=page_id) if material_id else page_id

    changed = await session.navigation.change_page(
        ref, PageChangeOptions(add_to_history=add_to_history)
    )
    return {"changed": changed, **_current()}


async def next_page() -> dict:
    """Move to the next available page of the active traversal."""
    changed = await current_session().navigation.go_to_next_page()
    return {"changed": changed, **_current()}


async def previous_page() -> dict:
    """Move to the previous available page of the active traversal."""
    changed = await current_session().navigation.go_to_previous_page()
    return {"changed": changed, **_current()}


router.tool()(change_page)
router.tool()(next_page)
router.tool()(previous_page)
