"""
Services - Page Loader

Fetches pages from the site material API, coalesces concurrent requests
for the same page and drains waiting callbacks once pages resolve.

Flow:
1. A sticky failure answers None straight away
2. The callback joins the key's buffer
3. While any fetch is in flight nothing else is started
4. Otherwise fetch, merge analytics scores, write the store
5. Drain every buffer whose key is now cached or failed, then start the
   next pending key
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import TYPE_CHECKING, Dict, List, Optional

import httpx

from material_engine.schemas import (
    LockState,
    Page,
    PageRef,
    PageReference,
    PageScores,
    PagesResponse,
    TaskProgress,
)
from material_engine.services.listeners import ListenerKind
from material_engine.services.page_store import PageCallback
from material_engine.services.score_aggregator import ScoreAggregator

if TYPE_CHECKING:
    from material_engine.session import MaterialSession

logger = logging.getLogger(__name__)

MATERIAL_API = "/o/site-material-api"
PROGRESS_STATUS_PATH = "/o/analytics-framework/progress-status"


class PageLoader:
    """Loads pages into the session's page store."""

    def __init__(self, session: "MaterialSession"):
        self.session = session
        self.aggregator = ScoreAggregator()
        self._tasks = set()

    @property
    def fetch_variant(self) -> str:
        """Pages endpoint selected by the loader settings."""
        settings = self.session.settings.loader
        if settings.analytics_enabled:
            return "pages-for-analytics"
        if settings.load_scores:
            return "pages-with-scores"
        return "pages"

    def load_page(self, ref: PageRef, level_depth: int, callback: PageCallback) -> None:
        """
        Request a page and deliver it to a callback.

        The callback receives the page, or None if the page is unavailable.
        It may run immediately (sticky failure) or after a later fetch.

        Args:
            ref: Page id or reference
            level_depth: Number of child levels to include in the fetch
            callback: Called exactly once with the result
        """
        target = self.session.resolve(ref)
        status = self.session.statuses.get_or_create(target.material_id, target.page_id)
        if status.failed:
            callback(None)
            return

        status.buffer.append(callback)
        if self.session.loading:
            logger.debug(f"Fetch in flight, buffered {target.material_id}/{target.page_id}")
            return

        self._start_fetch(target, level_depth)

    async def get_page(self, ref: PageRef, level_depth: int = 0) -> Optional[Page]:
        """
        Get a page from the cache, fetching it when missing.

        Args:
            ref: Page id or reference
            level_depth: Number of child levels to include on a fetch

        Returns:
            The cached Page object, or None if it is unavailable
        """
        target = self.session.resolve(ref)
        cached = self.session.store.get_cached(target.material_id, target.page_id)
        if cached is not None:
            return cached

        future = asyncio.get_running_loop().create_future()

        def deliver(page: Optional[Page]) -> None:
            if not future.done():
                future.set_result(page)

        self.load_page(target, level_depth, deliver)
        return await future

    async def get_level_pages(self, ref: PageRef) -> List[Page]:
        """
        Get the sibling level of a page, ordered by page index.

        Top level pages are compared against the cached top level pages of
        the same material.
        """
        page = await self.get_page(ref)
        if page is None:
            return []

        material_id = page.material_id
        if page.parent_id is None:
            pages = [p for p in self.session.store.pages_of(material_id) if p.parent_id is None]
        else:
            parent = await self.get_page(PageReference(material_id=material_id, page_id=page.parent_id), level_depth=1)
            if parent is None:
                return [page]
            siblings = await asyncio.gather(*(
                self.get_page(PageReference(material_id=material_id, page_id=child_id))
                for child_id in parent.children
            ))
            pages = [sibling for sibling in siblings if sibling is not None]

        return sorted(pages, key=lambda p: p.page_index)

    async def refresh_page_scores(self, ref: PageRef) -> Optional[Page]:
        """
        Reload a page's scores and merge them into the cached page.

        Page-updated listeners fire after a successful merge.
        """
        page = await self.get_page(ref)
        if page is None:
            return None

        path = f"{MATERIAL_API}/page-scores/{page.material_id}/{page.id}"
        try:
            data = await self.session.http.get(path)
            merged = {**page.scores.model_dump(by_alias=True), **(data or {})}
            scores = PageScores.model_validate(merged)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not refresh scores of page {page.id}: {e}")
            return page

        page.scores = scores
        if "stars" not in (data or {}):
            page.scores.stars = self.aggregator.stars(page.scores.score, page.scores.score_max)

        self.session.listeners.dispatch(ListenerKind.PAGE_UPDATED, page)
        return page

    def set_lock_state(self, ref: PageRef, lock_state: LockState) -> Optional[Page]:
        """
        Update a page's lock state and clear its sticky load failure.

        A page that was locked before may now be served, so the next request
        for it goes to the network again.
        """
        target = self.session.resolve(ref)
        self.session.statuses.clear_failed(target.material_id, target.page_id)

        page = self.session.store.get_cached(target.material_id, target.page_id)
        if page is None:
            return None

        page.lock_state = LockState(lock_state)
        self.session.listeners.dispatch(ListenerKind.PAGE_UPDATED, page)
        return page

    def _start_fetch(self, target: PageReference, level_depth: int) -> None:
        self.session.loading = True
        task = asyncio.get_running_loop().create_task(self._fetch(target, level_depth))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, target: PageReference, level_depth: int) -> None:
        material_id, page_id = target.material_id, target.page_id
        path = f"{MATERIAL_API}/{self.fetch_variant}/{material_id}/{page_id}"
        if level_depth:
            path = f"{path}/{level_depth}"

        started = time.monotonic()
        logger.info(f"Fetching {path}")

        error = None
        try:
            data = await self.session.http.get(path)
            response = PagesResponse.model_validate(data or {})

            if self.session.settings.loader.analytics_enabled:
                await self._merge_analytics(response, response.material_id or material_id)

            self._write(material_id, response)

            if page_id not in response.pages:
                logger.warning(f"Page {material_id}/{page_id} missing from response, not requesting it again")
                self.session.statuses.mark_failed(material_id, page_id)

            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.info(f"Loaded {len(response.pages)} page(s) for {material_id}/{page_id} in {elapsed_ms}ms")
        except Exception as e:
            error = e
            logger.error(f"Fetching page {material_id}/{page_id} failed: {e}")
        finally:
            self.session.loading = False

        if error is not None:
            self._resolve(target, None)
        self._drain()

    async def _merge_analytics(self, response: PagesResponse, material_id: str) -> None:
        """Fold per-task progress into the fetched pages. Failures are logged only."""
        payload = {
            "material": material_id,
            "users": self.session.settings.loader.users,
        }
        try:
            data = await self.session.http.post(PROGRESS_STATUS_PATH, payload)
            records = [TaskProgress.model_validate(item) for item in data or []]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Analytics progress for material {material_id} unavailable: {e}")
            return

        by_page: Dict[str, List[TaskProgress]] = defaultdict(list)
        for record in records:
            by_page[record.page_id].append(record)

        for page_id, page in response.pages.items():
            self.aggregator.apply(page, by_page.get(page_id, []))

    def _write(self, material_id: str, response: PagesResponse) -> None:
        store = self.session.store
        store.set_material_info(
            material_id,
            response.material_id,
            response.material_content_type,
            response.last_page_id,
        )
        for page in response.pages.values():
            store.put(material_id, page)

    def _resolve(self, target: PageReference, page: Optional[Page]) -> None:
        """Answer every callback waiting on one key."""
        status = self.session.statuses.get_or_create(target.material_id, target.page_id)
        callbacks, status.buffer = status.buffer, []
        for callback in callbacks:
            self._invoke(callback, page)

    def _drain(self) -> None:
        """
        Answer every buffer whose key became resolvable.

        Keys that are still unknown are left buffered; the first of them is
        fetched next.
        """
        next_key = None
        for (material_id, page_id), status in self.session.statuses.pending():
            page = self.session.store.get_cached(material_id, page_id)
            if page is not None or status.failed:
                callbacks, status.buffer = status.buffer, []
                for callback in callbacks:
                    self._invoke(callback, page)
            elif next_key is None:
                next_key = PageReference(material_id=material_id, page_id=page_id)

        if next_key is not None and not self.session.loading:
            self._start_fetch(next_key, 0)

    def _invoke(self, callback: PageCallback, page: Optional[Page]) -> None:
        try:
            callback(page)
        except Exception as e:
            logger.error(f"Page callback {callback!r} failed: {e}")
