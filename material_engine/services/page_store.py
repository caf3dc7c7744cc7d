"""
Services - Page Store

Session-lifetime page cache and the per-key loading status table used to
coalesce concurrent page requests.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from material_engine.schemas import Page

PageKey = Tuple[str, str]
PageCallback = Callable[[Optional[Page]], None]


@dataclass
class MaterialInfo:
    """Per-material values taken from the first response that carries them."""
    material_id: Optional[str] = None
    content_type: Optional[str] = None
    last_page_id: Optional[str] = None


class PageStore:
    """Keyed page storage. Pages are never evicted during a session."""

    def __init__(self):
        self._pages: Dict[str, Dict[str, Page]] = {}
        self._materials: Dict[str, MaterialInfo] = {}

    def get_cached(self, material_id: str, page_id: str) -> Optional[Page]:
        """Pure lookup, no side effects."""
        return self._pages.get(material_id, {}).get(page_id)

    def put(self, material_id: str, page: Page) -> None:
        # Responses may carry the numeric material id; the key wins
        page.material_id = material_id
        self._pages.setdefault(material_id, {})[page.id] = page

    def pages_of(self, material_id: str) -> List[Page]:
        """All cached pages of a material, in insertion order."""
        return list(self._pages.get(material_id, {}).values())

    def material_info(self, material_id: str) -> MaterialInfo:
        return self._materials.setdefault(material_id, MaterialInfo())

    def set_material_info(
        self,
        material_id: str,
        numeric_id: Optional[str],
        content_type: Optional[str],
        last_page_id: Optional[str] = None,
    ) -> None:
        """
        Record material id and content type once per material.

        Later responses never overwrite the stored values; the last viewed
        page id is updated whenever a response carries one.
        """
        info = self.material_info(material_id)
        if info.material_id is None and numeric_id is not None:
            info.material_id = numeric_id
        if info.content_type is None and content_type is not None:
            info.content_type = content_type
        if last_page_id is not None:
            info.last_page_id = last_page_id


@dataclass
class LoadingStatus:
    """Load state of one (material, page) key."""
    failed: bool = False
    buffer: List[PageCallback] = field(default_factory=list)


class LoadingStatusTable:
    """Lazily created loading status per (material, page) key."""

    def __init__(self):
        self._statuses: Dict[PageKey, LoadingStatus] = {}

    def get_or_create(self, material_id: str, page_id: str) -> LoadingStatus:
        key = (material_id, page_id)
        status = self._statuses.get(key)
        if status is None:
            status = LoadingStatus()
            self._statuses[key] = status
        return status

    def is_failed(self, material_id: str, page_id: str) -> bool:
        status = self._statuses.get((material_id, page_id))
        return status is not None and status.failed

    def mark_failed(self, material_id: str, page_id: str) -> None:
        self.get_or_create(material_id, page_id).failed = True

    def clear_failed(self, material_id: str, page_id: str) -> None:
        status = self._statuses.get((material_id, page_id))
        if status is not None:
            status.failed = False

    def pending(self) -> Iterator[Tuple[PageKey, LoadingStatus]]:
        """Keys with waiting callbacks, in first-request order."""
        for key, status in list(self._statuses.items()):
            if status.buffer:
                yield key, status
