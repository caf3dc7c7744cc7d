"""
Schemas Module - Pydantic Models

Data models for pages, materials, navigation and analytics.
"""

from material_engine.schemas.page import (
    LockState,
    Material,
    MaterialMetadata,
    Page,
    PageScores,
    PagesResponse,
)
from material_engine.schemas.navigation import (
    PageChangeOptions,
    PageRef,
    PageReference,
    PlaylistEntry,
)
from material_engine.schemas.analytics import Achievement, TaskProgress

__all__ = [
    "LockState",
    "Material",
    "MaterialMetadata",
    "Page",
    "PageScores",
    "PagesResponse",
    "PageChangeOptions",
    "PageRef",
    "PageReference",
    "PlaylistEntry",
    "Achievement",
    "TaskProgress",
]
