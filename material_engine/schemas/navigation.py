"""
Schemas - Navigation Models

Page references, playlist entries and page change options.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional, Union

from material_engine.schemas.page import WireModel


class PageReference(WireModel):
    """Fully qualified reference to a page, possibly in another material."""
    material_id: str
    page_id: str
    related_content_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PlaylistEntry(PageReference):
    """One item of a curated playlist."""


# A bare page id resolves against the current material
PageRef = Union[str, PageReference]


class PageChangeOptions(BaseModel):
    """Options controlling a single page transition."""
    add_to_history: bool = True
    ignore_page_mappers: bool = False
    load_content: bool = True
    back: bool = False
