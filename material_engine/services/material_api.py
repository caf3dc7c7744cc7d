"""
Services - Material API

Material level endpoints: permissions, metadata, page search and bookmarks.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from material_engine.schemas import Material
from material_engine.services.response_cache import ResponseCache

if TYPE_CHECKING:
    from material_engine.session import MaterialSession

logger = logging.getLogger(__name__)

MATERIAL_API = "/o/site-material-api"


class MaterialApi:
    """Wrapper for the material endpoints consumed by the navigation engine."""

    def __init__(self, session: "MaterialSession"):
        self.session = session
        self.cache = ResponseCache(session.settings)

    async def get_permissions(self, material_id: str) -> Dict[str, Any]:
        """
        Get the current user's permissions for a material.

        Args:
            material_id: Material ID

        Returns:
            Permission flags keyed by name
        """
        cache_key = f"permissions:{material_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        permissions = await self.session.http.get(f"{MATERIAL_API}/permissions/{material_id}") or {}
        self.cache.set(cache_key, permissions)
        return permissions

    async def get_material(self, material_id: str) -> Material:
        """Get the metadata of a material."""
        cache_key = f"metadata:{material_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        data = await self.session.http.get(
            f"{MATERIAL_API}/metadata-for-current-material/{material_id}"
        )
        material = Material.model_validate({**(data or {}), "id": material_id})

        info = self.session.store.material_info(material_id)
        if material.content_type is None:
            material.content_type = info.content_type

        self.cache.set(cache_key, material)
        return material

    async def get_current_material(self) -> Optional[Material]:
        """Metadata of the material the session is showing, if any."""
        if self.session.current_material_id is None:
            return None
        return await self.get_material(self.session.current_material_id)

    async def find_pages(self, material_id: str, query: str) -> List[Any]:
        """
        Search the pages of a material.

        Args:
            material_id: Material ID
            query: Free text query

        Returns:
            Search hits as returned by the API
        """
        if not query.strip():
            return []
        result = await self.session.http.post(
            f"{MATERIAL_API}/find-pages/{material_id}", {"query": query}
        )
        return list(result or [])

    async def set_bookmarks(self, material_id: str, page_ids: List[str]) -> Any:
        """Replace the user's bookmarked pages of a material."""
        logger.info(f"Storing {len(page_ids)} bookmark(s) for material {material_id}")
        return await self.session.http.post(
            f"{MATERIAL_API}/set-bookmarks/{material_id}", {"pages": list(page_ids)}
        )
