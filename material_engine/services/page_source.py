"""
Services - Page Sources

Traversal strategies deciding what "next" and "previous" page mean.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

from material_engine.schemas import PageRef, PageReference, PlaylistEntry

if TYPE_CHECKING:
    from material_engine.session import MaterialSession


class PageSource(ABC):
    """Base class for traversal strategies."""

    @abstractmethod
    async def get_next_page_id(self) -> Optional[PageRef]:
        """
        Reference of the next page.

        Returns:
            Page id or reference, or None at the end of the traversal
        """
        pass

    @abstractmethod
    async def get_previous_page_id(self) -> Optional[PageRef]:
        """
        Reference of the previous page.

        Returns:
            Page id or reference, or None at the start of the traversal
        """
        pass


class DefaultPageSource(PageSource):
    """Sequential traversal over the current page's sibling level."""

    def __init__(self, session: "MaterialSession"):
        self.session = session

    async def get_next_page_id(self) -> Optional[PageReference]:
        return await self._step(1)

    async def get_previous_page_id(self) -> Optional[PageReference]:
        return await self._step(-1)

    async def _step(self, direction: int) -> Optional[PageReference]:
        current = self.session.current_page
        if current is None:
            return None

        loader = self.session.loader
        ref = PageReference(material_id=current.material_id, page_id=current.id)
        page = await loader.get_page(ref)
        if page is None:
            return None

        level = await loader.get_level_pages(ref)
        ids = [sibling.id for sibling in level]
        if page.id not in ids:
            return None

        position = ids.index(page.id) + direction
        while 0 <= position < len(level):
            # Locked, navigation-only and inactive pages are stepped over
            if level[position].is_reachable:
                return PageReference(material_id=current.material_id, page_id=level[position].id)
            position += direction
        return None


class PlaylistPageSource(PageSource):
    """
    Traversal over a curated, possibly cross-material list of pages.

    The cursor starts before the first entry, so the first call to
    get_next_page_id() yields entry 0. Calls at either boundary return None
    and leave the cursor where it is.
    """

    def __init__(self, entries: Sequence[PlaylistEntry]):
        self.entries: List[PlaylistEntry] = list(entries)
        self.cursor = -1

    @property
    def current(self) -> Optional[PlaylistEntry]:
        if 0 <= self.cursor < len(self.entries):
            return self.entries[self.cursor]
        return None

    async def get_next_page_id(self) -> Optional[PlaylistEntry]:
        if self.cursor >= len(self.entries) - 1:
            return None
        self.cursor += 1
        return self.entries[self.cursor]

    async def get_previous_page_id(self) -> Optional[PlaylistEntry]:
        if self.cursor <= 0:
            return None
        self.cursor -= 1
        return self.entries[self.cursor]
