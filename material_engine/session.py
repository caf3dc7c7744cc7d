"""
Material Session

One context object owning all mutable navigation state: the page store,
loading statuses, the in-flight flag, the current page and the active
page source. Every service receives the session explicitly.
"""

import logging
from typing import Optional

from material_engine.config import get_settings
from material_engine.schemas import Page, PageChangeOptions, PageRef, PageReference
from material_engine.services.history import BrowserHistory, InMemoryHistory
from material_engine.services.http_client import HttpClient
from material_engine.services.listeners import ListenerRegistry
from material_engine.services.material_api import MaterialApi
from material_engine.services.navigation import NavigationController
from material_engine.services.page_loader import PageLoader
from material_engine.services.page_source import DefaultPageSource, PageSource
from material_engine.services.page_store import LoadingStatusTable, PageStore
from material_engine.services.renderers import RendererRegistry

logger = logging.getLogger(__name__)


class MaterialSession:
    """Navigation state and services for one learner session."""

    def __init__(
        self,
        settings=None,
        http: Optional[HttpClient] = None,
        history: Optional[BrowserHistory] = None,
    ):
        self.settings = settings or get_settings()
        self.http = http or HttpClient(self.settings)
        self.history = history or InMemoryHistory()

        self.store = PageStore()
        self.statuses = LoadingStatusTable()
        self.listeners = ListenerRegistry()
        self.renderers = RendererRegistry()

        # Shared by every key: one page fetch at a time per session
        self.loading = False
        self.current_material_id: Optional[str] = None
        self.current_page: Optional[Page] = None
        self.font_size = 0

        self.loader = PageLoader(self)
        self.api = MaterialApi(self)
        self.navigation = NavigationController(self)
        self.page_source: PageSource = DefaultPageSource(self)

    def resolve(self, ref: PageRef) -> PageReference:
        """
        Turn a page id or reference into a full reference.

        Raises:
            ValueError: If a bare id is given before a material is open
        """
        if isinstance(ref, PageReference):
            return ref
        if not ref:
            raise ValueError("Page id must not be empty")
        if self.current_material_id is None:
            raise ValueError(f"Cannot resolve page {ref!r} without a current material")
        return PageReference(material_id=self.current_material_id, page_id=str(ref))

    async def open_material(self, material_id: str, page_id: Optional[str] = None) -> bool:
        """
        Make a material current and optionally show one of its pages.

        Without a page id the material's last viewed page is shown once it is
        known from an earlier response.
        """
        if not material_id:
            raise ValueError("Material id must not be empty")
        self.current_material_id = str(material_id)
        logger.info(f"Opened material {material_id}")

        page_id = page_id or self.store.material_info(self.current_material_id).last_page_id
        if page_id is None:
            return False
        return await self.navigation.change_page(page_id, PageChangeOptions(add_to_history=False))

    async def aclose(self) -> None:
        await self.http.aclose()
