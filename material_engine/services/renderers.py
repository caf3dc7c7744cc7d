"""
Services - Content Renderers

Registry mapping page content types to content renderers.
"""

import inspect
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, Union

from material_engine.schemas import Page

if TYPE_CHECKING:
    from material_engine.session import MaterialSession

logger = logging.getLogger(__name__)

Renderer = Callable[[Page], Union[Any, Awaitable[Any]]]

PAGE_CONTENT_PATH = "/o/site-material-api/page-content"


class RendererRegistry:
    """
    Content renderers keyed by content type.

    Pages whose content type has no renderer fall back to fetching the
    page content fragment, with a timestamp parameter to bypass caches.
    """

    def __init__(self):
        self._renderers: Dict[str, Renderer] = {}

    def register(self, content_type: str, renderer: Renderer) -> None:
        self._renderers[content_type] = renderer

    def get(self, content_type: Optional[str]) -> Optional[Renderer]:
        if content_type is None:
            return None
        return self._renderers.get(content_type)

    async def render(self, page: Page, session: "MaterialSession") -> Any:
        """
        Produce the content of a page.

        Args:
            page: Page being shown
            session: Session whose HTTP client serves the fallback fetch

        Returns:
            Whatever the renderer produced, or the fetched content fragment
        """
        renderer = self.get(page.content_type)
        if renderer is not None:
            result = renderer(page)
            if inspect.isawaitable(result):
                result = await result
            return result

        logger.debug(f"No renderer for content type {page.content_type!r}, fetching content of {page.id}")
        path = f"{PAGE_CONTENT_PATH}/{page.material_id}/{page.id}"
        return await session.http.get_text(path, params={"t": int(time.time() * 1000)})
