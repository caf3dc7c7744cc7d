"""
Tools Module - MCP Tool Implementations

Page cache and navigation tools backed by one shared session.
"""

from material_engine.tools import get_page
from material_engine.tools import get_level_pages
from material_engine.tools import change_page
from material_engine.tools import start_playlist
from material_engine.tools import find_pages

__all__ = [
    "get_page",
    "get_level_pages",
    "change_page",
    "start_playlist",
    "find_pages",
]
