"""
Unit Tests for the Page Store and Page Loader
"""

import asyncio

import httpx
import pytest

from conftest import make_session
from material_engine.schemas import LockState, Page, PageReference
from material_engine.services.listeners import ListenerKind
from material_engine.services.page_store import LoadingStatusTable, PageStore


class TestPageStore:
    """Tests for PageStore and LoadingStatusTable."""

    def test_get_cached_is_pure_lookup(self):
        """Test that a miss creates nothing."""
        store = PageStore()

        assert store.get_cached("m1", "a") is None
        assert store.pages_of("m1") == []

    def test_put_fills_material_id(self):
        """Test that stored pages know their material."""
        store = PageStore()
        store.put("m1", Page(id="a"))

        page = store.get_cached("m1", "a")
        assert page.material_id == "m1"
        assert store.pages_of("m1") == [page]

    def test_material_info_set_once(self):
        """Test that id and content type come from the first response."""
        store = PageStore()
        store.set_material_info("m1", "101", "book", "a")
        store.set_material_info("m1", "999", "other", "c")

        info = store.material_info("m1")
        assert info.material_id == "101"
        assert info.content_type == "book"
        assert info.last_page_id == "c"

    def test_status_created_lazily(self):
        """Test that statuses start clean and failure can be cleared."""
        table = LoadingStatusTable()

        status = table.get_or_create("m1", "a")
        assert status.failed is False
        assert status.buffer == []
        assert table.get_or_create("m1", "a") is status

        table.mark_failed("m1", "a")
        assert table.is_failed("m1", "a")
        table.clear_failed("m1", "a")
        assert not table.is_failed("m1", "a")


class TestPageLoader:
    """Tests for PageLoader."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, session, api):
        """Test that identical concurrent requests are coalesced."""
        results = await asyncio.gather(*(session.loader.get_page("a") for _ in range(5)))

        assert api.fetch_count == 1
        assert results[0] is not None
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_cache_hit_does_not_fetch(self, session, api):
        """Test that a cached page is returned without a second fetch."""
        first = await session.loader.get_page("a")
        second = await session.loader.get_page("a")

        assert first is second
        assert api.fetch_count == 1

    @pytest.mark.asyncio
    async def test_buffered_callbacks_run_in_order(self, session, api):
        """Test FIFO delivery of buffered callbacks."""
        calls = []
        done = asyncio.Event()

        def callback(tag):
            def deliver(page):
                calls.append((tag, page.id))
                if len(calls) == 3:
                    done.set()
            return deliver

        for tag in ("first", "second", "third"):
            session.loader.load_page("c", 0, callback(tag))
        await done.wait()

        assert calls == [("first", "c"), ("second", "c"), ("third", "c")]
        assert api.fetch_count == 1

    @pytest.mark.asyncio
    async def test_fetches_are_serialized(self, session, api):
        """Test that a single in-flight flag serializes unrelated keys."""
        a, c = await asyncio.gather(
            session.loader.get_page("a"),
            session.loader.get_page("c"),
        )

        assert a.id == "a"
        assert c.id == "c"
        assert api.fetch_count == 2
        assert api.max_in_flight == 1
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_missing_page_fails_sticky(self, session, api):
        """Test that a page missing from the response is never requested again."""
        assert await session.loader.get_page("nope") is None
        assert await session.loader.get_page("nope") is None
        assert api.fetch_count == 1
        assert session.statuses.is_failed("m1", "nope")

    @pytest.mark.asyncio
    async def test_lock_state_update_clears_failure(self, session, api):
        """Test that a lock state update allows a new fetch."""
        assert await session.loader.get_page("nope") is None

        session.loader.set_lock_state("nope", LockState.OPEN)
        assert not session.statuses.is_failed("m1", "nope")

        api.pages[("m1", "nope")] = {"id": "nope", "breadcrumb": ["r"]}
        page = await session.loader.get_page("nope")

        assert page is not None
        assert api.fetch_count == 2

    @pytest.mark.asyncio
    async def test_coalesced_failure_answers_everyone(self, session, api):
        """Test that all waiting callers get None on failure."""
        results = await asyncio.gather(*(session.loader.get_page("nope") for _ in range(3)))

        assert results == [None, None, None]
        assert api.fetch_count == 1

    @pytest.mark.asyncio
    async def test_response_pages_and_material_info_are_stored(self, session, api):
        """Test that every page of a response is cached."""
        await session.loader.get_page("r", level_depth=1)

        for page_id in ("r", "a", "b", "c", "h"):
            assert session.store.get_cached("m1", page_id) is not None
        info = session.store.material_info("m1")
        assert info.material_id == "101"
        assert info.content_type == "book"
        assert info.last_page_id == "a"
        assert api.page_fetches[0][3] == 1

    @pytest.mark.asyncio
    async def test_http_error_is_not_sticky(self, session, api):
        """Test that a failed request answers None without marking failure."""
        original = api.handler

        async def broken(request):
            return httpx.Response(503)

        session.http._transport.handler = broken
        assert await session.loader.get_page("a") is None
        assert not session.statuses.is_failed("m1", "a")
        assert session.loading is False

        session.http._transport.handler = original
        assert (await session.loader.get_page("a")).id == "a"

    @pytest.mark.asyncio
    async def test_unexpected_transport_error_releases_loading(self, session, api):
        """Test that a non-HTTP failure answers None and later fetches still run."""
        original = api.handler

        async def broken(request):
            if request.url.path.endswith("/m1/a"):
                raise RuntimeError("connection reset by peer")
            return await original(request)

        session.http._transport.handler = broken
        first, second = await asyncio.gather(
            session.loader.get_page("a"),
            session.loader.get_page("c"),
        )

        assert first is None
        assert second.id == "c"
        assert session.loading is False
        assert not session.statuses.is_failed("m1", "a")

        session.http._transport.handler = original
        assert (await session.loader.get_page("a")).id == "a"

    @pytest.mark.asyncio
    async def test_cross_material_reference(self, session, api):
        """Test loading a page of another material."""
        page = await session.loader.get_page(PageReference(material_id="m2", page_id="x"))

        assert page.material_id == "m2"
        assert session.store.get_cached("m2", "x") is page

    @pytest.mark.asyncio
    async def test_level_pages_in_index_order(self, session, api):
        """Test sibling level lookup through the parent."""
        level = await session.loader.get_level_pages("c")

        assert [page.id for page in level] == ["a", "b", "c", "h"]

    @pytest.mark.asyncio
    async def test_refresh_page_scores_merges_and_notifies(self, session, api):
        """Test partial score merge and page-updated dispatch."""
        updated = []
        session.listeners.add(ListenerKind.PAGE_UPDATED, updated.append)
        api.page_scores["a"] = {"score": 7, "visited": True}

        page = await session.loader.refresh_page_scores("a")

        assert page.scores.score == 7
        assert page.scores.score_max == 10
        assert page.scores.visited is True
        assert page.scores.stars == 3
        assert updated == [page]

    @pytest.mark.asyncio
    async def test_refresh_page_scores_request_failure(self, session, api):
        """Test that a failed score request keeps the cached scores."""
        updated = []
        session.listeners.add(ListenerKind.PAGE_UPDATED, updated.append)
        page = await session.loader.get_page("a")
        api.scores_status = 500

        assert await session.loader.refresh_page_scores("a") is page
        assert page.scores.score == 0
        assert page.scores.score_max == 10
        assert updated == []

    @pytest.mark.asyncio
    async def test_refresh_page_scores_invalid_payload(self, session, api):
        """Test that an out-of-range score payload is rejected."""
        updated = []
        session.listeners.add(ListenerKind.PAGE_UPDATED, updated.append)
        api.page_scores["a"] = {"progress": 5}

        page = await session.loader.refresh_page_scores("a")

        assert page.scores.progress == 0.0
        assert page.scores.score_max == 10
        assert updated == []

    def test_resolve_requires_material(self, session):
        """Test that bare ids need a current material."""
        session.current_material_id = None

        with pytest.raises(ValueError):
            session.resolve("a")


class TestFetchVariants:
    """Tests for endpoint selection and analytics merging."""

    @pytest.mark.asyncio
    async def test_plain_pages_without_scores(self, api):
        """Test the pages endpoint when score loading is off."""
        session = make_session(api, LOAD_SCORES=False)
        await session.loader.get_page("a")

        assert api.page_fetches[0][0] == "pages"

    @pytest.mark.asyncio
    async def test_pages_with_scores(self, api):
        """Test the scored endpoint when score loading is on."""
        session = make_session(api, LOAD_SCORES=True)
        await session.loader.get_page("a")

        assert api.page_fetches[0][0] == "pages-with-scores"

    @pytest.mark.asyncio
    async def test_analytics_scores_are_merged(self, api):
        """Test that per-task progress is folded into page scores."""
        session = make_session(api, ANALYTICS_ENABLED=True, ANALYTICS_USERS="u1, u2")
        api.progress_records = [
            {"pageId": "a", "score": 3, "progress": 50, "tasks": 2},
            {"pageId": "a", "score": 3, "progress": 100, "tasks": 2},
        ]

        page = await session.loader.get_page("a")

        assert api.page_fetches[0][0] == "pages-for-analytics"
        assert page.scores.score == 6
        assert page.scores.progress == pytest.approx(0.75)
        assert page.scores.visited is True
        assert page.scores.stars == 2
        post = [r for r in api.requests if r[1] == "/o/analytics-framework/progress-status"]
        assert len(post) == 1

    @pytest.mark.asyncio
    async def test_analytics_failure_still_delivers_page(self, api):
        """Test that analytics errors are swallowed."""
        session = make_session(api, ANALYTICS_ENABLED=True)
        api.progress_status = 500

        page = await session.loader.get_page("a")

        assert page is not None
        assert page.scores.score == 0
        assert page.scores.visited is False
