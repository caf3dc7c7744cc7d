"""
Schemas - Page Models

Pydantic models for material pages as served by the site material API.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict


class WireModel(BaseModel):
    """Base for models read from camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LockState(str, Enum):
    """Access-control tag for a page."""
    OPEN = "OPEN"
    PREVIOUSLY_LOCKED = "PREVIOUSLY_LOCKED"
    SHOW_IN_NAVIGATION_ONLY = "SHOW_IN_NAVIGATION_ONLY"
    LOCKED = "LOCKED"


# Pages in these states are skipped by sequential navigation
UNREACHABLE_LOCK_STATES = frozenset({LockState.LOCKED, LockState.SHOW_IN_NAVIGATION_ONLY})


class PageScores(WireModel):
    """Score summary of a page."""
    score: float = 0
    score_max: float = 0
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    visited: bool = False
    stars: int = 0
    stars_max: int = 3


class Page(WireModel):
    """One navigable unit of a material."""
    id: str
    material_id: Optional[str] = None
    title: str = ""
    description: str = ""
    url: str = ""
    identifier: Optional[str] = None
    breadcrumb: List[str] = []
    children: List[str] = []
    page_index: int = 0
    level: int = 0
    lock_state: LockState = LockState.OPEN
    lock_reasons: List[str] = []
    hidden: bool = False
    hide_from_children: bool = False
    hide_from_navigation: bool = False
    inactive: bool = False
    content_type: Optional[str] = None
    tasks: int = 0
    scores: PageScores = Field(default_factory=PageScores)

    @field_validator("id", "material_id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        # The API serves numeric ids for some materials
        return str(value) if isinstance(value, int) else value

    @field_validator("breadcrumb", "children", mode="before")
    @classmethod
    def _stringify_ids(cls, value):
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @field_validator("lock_state", mode="before")
    @classmethod
    def _known_lock_state(cls, value):
        if isinstance(value, LockState):
            return value
        if value not in LockState.__members__:
            return LockState.OPEN
        return value

    @property
    def parent_id(self) -> Optional[str]:
        """Id of the direct parent, or None for a top level page."""
        return self.breadcrumb[-1] if self.breadcrumb else None

    @property
    def is_reachable(self) -> bool:
        """Whether sequential navigation may stop on this page."""
        return not self.inactive and self.lock_state not in UNREACHABLE_LOCK_STATES


class PagesResponse(WireModel):
    """Response of the pages endpoints."""
    pages: Dict[str, Page] = {}
    material_id: Optional[str] = None
    material_content_type: Optional[str] = None
    last_page_id: Optional[str] = None

    @field_validator("material_id", "last_page_id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return str(value) if isinstance(value, int) else value


class MaterialMetadata(WireModel):
    """Descriptive metadata of a material."""
    title: str = ""
    language: Optional[str] = None
    isbns: List[str] = []


class Material(WireModel):
    """A content product composed of pages."""
    id: str
    content_type: Optional[str] = None
    numeric_id: Optional[int] = None
    metadata: MaterialMetadata = Field(default_factory=MaterialMetadata)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if isinstance(value, int) else value
