"""
Tools - Session Binding

The server binds one MaterialSession that all tools share.
"""

from typing import Optional

from material_engine.schemas import Page
from material_engine.session import MaterialSession

_session: Optional[MaterialSession] = None


def bind_session(session: MaterialSession) -> MaterialSession:
    global _session
    _session = session
    return session


def current_session() -> MaterialSession:
    """Return the bound session, creating one from settings on first use."""
    global _session
    if _session is None:
        _session = MaterialSession()
    return _session


def page_summary(page: Page) -> dict:
    """Tool-facing view of a page."""
    return {
        "id": page.id,
        "material_id": page.material_id,
        "title": page.title,
        "url": page.url,
        "breadcrumb": page.breadcrumb,
        "children": page.children,
        "page_index": page.page_index,
        "lock_state": page.lock_state.value,
        "scores": page.scores.model_dump(),
    }
