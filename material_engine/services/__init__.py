"""
Services Module - Business Logic Layer

Provides the page store, loader, traversal strategies, navigation and the
material endpoints.
"""

from material_engine.services.http_client import HttpClient
from material_engine.services.page_store import LoadingStatus, LoadingStatusTable, PageStore
from material_engine.services.score_aggregator import ScoreAggregator
from material_engine.services.listeners import ListenerKind, ListenerRegistry
from material_engine.services.page_loader import PageLoader
from material_engine.services.page_source import DefaultPageSource, PageSource, PlaylistPageSource
from material_engine.services.renderers import RendererRegistry
from material_engine.services.history import BrowserHistory, InMemoryHistory
from material_engine.services.response_cache import ResponseCache
from material_engine.services.material_api import MaterialApi
from material_engine.services.navigation import NavigationController

__all__ = [
    "HttpClient",
    "LoadingStatus",
    "LoadingStatusTable",
    "PageStore",
    "ScoreAggregator",
    "ListenerKind",
    "ListenerRegistry",
    "PageLoader",
    "DefaultPageSource",
    "PageSource",
    "PlaylistPageSource",
    "RendererRegistry",
    "BrowserHistory",
    "InMemoryHistory",
    "ResponseCache",
    "MaterialApi",
    "NavigationController",
]
