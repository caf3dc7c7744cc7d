"""
Schemas - Analytics Models

Per-task progress records served by the analytics framework.
"""

from typing import Optional

from pydantic import field_validator

from material_engine.schemas.page import WireModel


class TaskProgress(WireModel):
    """Progress of one task on a page."""
    page_id: str
    score: float = 0
    progress: float = 0
    tasks: int = 0
    task_id: Optional[str] = None

    @field_validator("page_id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if isinstance(value, int) else value


class Achievement(WireModel):
    """Coarse 0-3 achievement tier of a page."""
    tier: int
    max_tier: int
