"""
Shared fixtures: a fake site material API served through httpx.MockTransport.
"""

import asyncio
import json
import re

import httpx
import pytest

from material_engine.config import (
    CacheSettings,
    LoaderSettings,
    MaterialApiSettings,
    Settings,
)
from material_engine.services.http_client import HttpClient
from material_engine.session import MaterialSession

BASE_URL = "http://materials.test"

PAGES_PATH = re.compile(
    r"^/o/site-material-api/(pages|pages-with-scores|pages-for-analytics)/([^/]+)/([^/]+)(?:/(\d+))?$"
)


def make_page(page_id, material_id="m1", breadcrumb=(), children=(), page_index=0, **extra):
    page = {
        "id": page_id,
        "materialId": material_id,
        "title": f"Page {page_id}",
        "url": f"/m/{material_id}/{page_id}",
        "breadcrumb": list(breadcrumb),
        "children": list(children),
        "pageIndex": page_index,
        "lockState": "OPEN",
        "contentType": "book-page",
        "scores": {"score": 0, "scoreMax": 10},
    }
    page.update(extra)
    return page


def default_pages():
    """
    m1: r -> [a, b (locked), c, h (hidden)], h -> [hx (locked), k]
    m2: x
    """
    return {
        ("m1", "r"): make_page("r", children=["a", "b", "c", "h"]),
        ("m1", "a"): make_page("a", breadcrumb=["r"], page_index=0, identifier="intro"),
        ("m1", "b"): make_page("b", breadcrumb=["r"], page_index=1, lockState="LOCKED"),
        ("m1", "c"): make_page("c", breadcrumb=["r"], page_index=2),
        ("m1", "h"): make_page(
            "h", breadcrumb=["r"], children=["hx", "k"], page_index=3, hideFromNavigation=True
        ),
        ("m1", "hx"): make_page("hx", breadcrumb=["r", "h"], page_index=0, lockState="LOCKED"),
        ("m1", "k"): make_page("k", breadcrumb=["r", "h"], page_index=1),
        ("m2", "x"): make_page("x", material_id="m2"),
    }


class FakeMaterialApi:
    """In-process stand-in for the material REST API."""

    def __init__(self):
        self.pages = default_pages()
        self.requests = []
        self.page_fetches = []
        self.progress_records = []
        self.progress_status = 200
        self.page_scores = {}
        self.scores_status = 200
        self.content_status = 200
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def fetch_count(self):
        return len(self.page_fetches)

    def _pages_response(self, material_id, page_id, level):
        pages = {}

        def collect(pid, depth):
            page = self.pages.get((material_id, pid))
            if page is None:
                return
            pages[pid] = json.loads(json.dumps(page))
            if depth > 0:
                for child in page["children"]:
                    collect(child, depth - 1)

        collect(page_id, level)
        return {
            "pages": pages,
            "materialId": 101 if material_id == "m1" else 202,
            "materialContentType": "book",
            "lastPageId": "a",
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path, dict(request.url.params)))

        match = PAGES_PATH.match(path)
        if match and request.method == "GET":
            variant, material_id, page_id, level = match.groups()
            self.page_fetches.append((variant, material_id, page_id, int(level or 0)))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            await asyncio.sleep(0)
            self.in_flight -= 1
            return httpx.Response(200, json=self._pages_response(material_id, page_id, int(level or 0)))

        if path == "/o/analytics-framework/progress-status":
            if self.progress_status != 200:
                return httpx.Response(self.progress_status)
            return httpx.Response(200, json=self.progress_records)

        if path.startswith("/o/site-material-api/page-content/"):
            if self.content_status != 200:
                return httpx.Response(self.content_status)
            return httpx.Response(200, text=f"<p>{path.rsplit('/', 1)[-1]}</p>")

        if path.startswith("/o/site-material-api/page-scores/"):
            if self.scores_status != 200:
                return httpx.Response(self.scores_status)
            page_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json=self.page_scores.get(page_id, {}))

        if path.startswith("/o/site-material-api/permissions/"):
            return httpx.Response(200, json={"view": True, "edit": False})

        if path.startswith("/o/site-material-api/metadata-for-current-material/"):
            return httpx.Response(200, json={
                "contentType": "book",
                "numericId": 101,
                "metadata": {"title": "Biology 1", "language": "fi", "isbns": ["978-951-0-00000-0"]},
            })

        if path.startswith("/o/site-material-api/find-pages/"):
            query = json.loads(request.content)["query"]
            return httpx.Response(200, json=[{"pageId": "a", "title": f"Match for {query}"}])

        if path.startswith("/o/site-material-api/set-bookmarks/"):
            return httpx.Response(200, json={"stored": json.loads(request.content)["pages"]})

        return httpx.Response(404)


def make_settings(**loader):
    return Settings(
        api=MaterialApiSettings(MATERIAL_API_BASE_URL=BASE_URL),
        loader=LoaderSettings(**loader),
        cache=CacheSettings(CACHE_ENABLED=True),
    )


def make_session(api, **loader):
    settings = make_settings(**loader)
    http = HttpClient(settings, transport=httpx.MockTransport(api.handler))
    session = MaterialSession(settings, http=http)
    session.current_material_id = "m1"
    return session


@pytest.fixture
def api():
    return FakeMaterialApi()


@pytest.fixture
def session(api):
    return make_session(api, LOAD_SCORES=True, ANALYTICS_ENABLED=False, INCREMENTAL_LOAD=True)
