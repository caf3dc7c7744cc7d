"""
Services - Navigation Controller

Drives transitions between the displayed page and a new one.

Decision order for change_page():
1. A registered page mapper takes over the request entirely
2. Pages hidden from navigation redirect to their parent (going back) or
   to their first available child
3. Same material with incremental loading: before-load barrier, history,
   content, page-changed listeners, then the page becomes current
4. Otherwise: before-load barrier, then a full navigation to the page URL
"""

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence, Tuple

import httpx

from material_engine.schemas import (
    LockState,
    Page,
    PageChangeOptions,
    PageRef,
    PageReference,
    PlaylistEntry,
)
from material_engine.services.listeners import ListenerKind
from material_engine.services.page_source import DefaultPageSource, PlaylistPageSource

if TYPE_CHECKING:
    from material_engine.session import MaterialSession

logger = logging.getLogger(__name__)

PageMapper = Callable[[PageReference, PageChangeOptions], Any]
ExtraPageHandler = Callable[[str], Any]


async def _settle(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class NavigationController:
    """Page transitions, redirects and history for one session."""

    def __init__(self, session: "MaterialSession"):
        self.session = session
        self._mappers: Dict[Tuple[str, str], PageMapper] = {}
        self._extra_pages: Dict[str, ExtraPageHandler] = {}
        self.current_content: Any = None

    # Listener registration

    def on_page_change(self, callback: Callable[..., Any], remove_after_next_change: bool = False):
        """Called with (page, metadata) after an in-page transition."""
        return self.session.listeners.add(ListenerKind.PAGE_CHANGED, callback, remove_after_next_change)

    def on_page_update(self, callback: Callable[..., Any], remove_after_next_change: bool = False):
        """Called with the page after its scores or lock state change."""
        return self.session.listeners.add(ListenerKind.PAGE_UPDATED, callback, remove_after_next_change)

    def on_page_starts_loading(self, callback: Callable[..., Any], remove_after_next_change: bool = False):
        """Called before a transition; a returned awaitable delays it until settled."""
        return self.session.listeners.add(ListenerKind.BEFORE_LOAD, callback, remove_after_next_change)

    def on_font_size_change(self, callback: Callable[..., Any], remove_after_next_change: bool = False):
        return self.session.listeners.add(ListenerKind.FONT_SIZE, callback, remove_after_next_change)

    def on_playlist_change(self, callback: Callable[..., Any], remove_after_next_change: bool = False):
        """Called with the new playlist source, or None when a playlist ends."""
        return self.session.listeners.add(ListenerKind.PLAYLIST_CHANGED, callback, remove_after_next_change)

    # Page mappers and extra pages

    def register_page_mapper(self, ref: PageRef, mapper: PageMapper) -> None:
        target = self.session.resolve(ref)
        self._mappers[(target.material_id, target.page_id)] = mapper

    def remove_page_mapper(self, ref: PageRef) -> None:
        target = self.session.resolve(ref)
        self._mappers.pop((target.material_id, target.page_id), None)

    def register_extra_page(self, name: str, handler: ExtraPageHandler) -> None:
        self._extra_pages[name] = handler

    async def open_extra_page(self, name: str, add_to_history: bool = True) -> bool:
        """
        Show a page that is not part of the material, e.g. a notes view.

        Returns:
            False if no handler is registered for the name
        """
        handler = self._extra_pages.get(name)
        if handler is None:
            logger.warning(f"No extra page registered as {name!r}")
            return False

        state = {"extraPage": name}
        if add_to_history:
            self.session.history.push_state(state)
        else:
            self.session.history.replace_state(state)

        await _settle(handler(name))
        return True

    # Transitions

    async def change_page(
        self,
        ref: PageRef,
        options: Optional[PageChangeOptions] = None,
        metadata: Any = None,
        url_params: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Move to another page.

        Args:
            ref: Page id in the current material, or a full reference
            options: Transition options
            metadata: Passed to page-changed listeners
            url_params: Query parameters appended on a full navigation

        Returns:
            True if the transition happened or was handed to a mapper,
            False if the page is unavailable
        """
        options = options or PageChangeOptions()
        target = self.session.resolve(ref)

        mapper = self._mappers.get((target.material_id, target.page_id))
        if mapper is not None and not options.ignore_page_mappers:
            logger.info(f"Page {target.page_id} handled by page mapper")
            await _settle(mapper(target, options))
            return True

        page = await self.session.loader.get_page(target)
        if page is None:
            logger.warning(f"Page {target.material_id}/{target.page_id} is not available")
            return False

        if page.hide_from_navigation:
            return await self._redirect_hidden(page, options, metadata, url_params)

        incremental = self.session.settings.loader.incremental_load
        if incremental and page.material_id == self.session.current_material_id:
            await self._show_in_place(page, options, metadata)
        else:
            await self._navigate_away(page, url_params)
        return True

    async def _redirect_hidden(
        self,
        page: Page,
        options: PageChangeOptions,
        metadata: Any,
        url_params: Optional[Dict[str, Any]],
    ) -> bool:
        if options.back:
            if page.parent_id is None:
                logger.info(f"Hidden page {page.id} has no parent to go back to")
                return False
            logger.debug(f"Hidden page {page.id}, going back to parent {page.parent_id}")
            parent = PageReference(material_id=page.material_id, page_id=page.parent_id)
            return await self.change_page(parent, options, metadata, url_params)

        for child_id in page.children:
            child_ref = PageReference(material_id=page.material_id, page_id=child_id)
            child = await self.session.loader.get_page(child_ref)
            if child is None or child.inactive or child.lock_state == LockState.LOCKED:
                continue
            logger.debug(f"Hidden page {page.id}, moving on to child {child_id}")
            child_options = options.model_copy(update={"back": False})
            return await self.change_page(child_ref, child_options, metadata, url_params)

        logger.info(f"Hidden page {page.id} has no available child")
        return False

    async def _show_in_place(self, page: Page, options: PageChangeOptions, metadata: Any) -> None:
        listeners = self.session.listeners

        await listeners.gather_before_load()
        listeners.prune(ListenerKind.BEFORE_LOAD)

        state = {"pageId": page.id}
        if options.add_to_history:
            self.session.history.push_state(state, page.url or None)
        else:
            self.session.history.replace_state(state, page.url or None)

        self.current_content = None
        if options.load_content:
            try:
                self.current_content = await self.session.renderers.render(page, self.session)
            except httpx.HTTPError as e:
                logger.warning(f"Content of page {page.id} unavailable: {e}")

        listeners.dispatch(ListenerKind.PAGE_CHANGED, page, metadata)
        listeners.prune(ListenerKind.PAGE_CHANGED)

        self.session.current_page = page
        logger.info(f"Current page is now {page.material_id}/{page.id}")

        for kind in (ListenerKind.PAGE_UPDATED, ListenerKind.FONT_SIZE, ListenerKind.PLAYLIST_CHANGED):
            listeners.prune(kind)

    async def _navigate_away(self, page: Page, url_params: Optional[Dict[str, Any]]) -> None:
        """Full navigation; in-page listeners do not fire."""
        listeners = self.session.listeners

        await listeners.gather_before_load()
        listeners.prune(ListenerKind.BEFORE_LOAD)

        url = self.absolute_url(page, url_params)
        logger.info(f"Navigating to {url}")
        self.session.history.navigate(url)

        # The host reloads on navigation, so the session follows the new page
        self.session.current_material_id = page.material_id
        self.session.current_page = page
        listeners.prune_all()

    def absolute_url(self, page: Page, url_params: Optional[Dict[str, Any]] = None) -> str:
        url = httpx.URL(self.session.http.base_url + "/").join(page.url or "")
        if url_params:
            url = url.copy_merge_params(url_params)
        return str(url)

    # Sequential navigation

    async def go_to_next_page(self) -> bool:
        ref = await self.session.page_source.get_next_page_id()
        if ref is None:
            return False
        return await self.change_page(ref)

    async def go_to_previous_page(self) -> bool:
        ref = await self.session.page_source.get_previous_page_id()
        if ref is None:
            return False
        return await self.change_page(ref, PageChangeOptions(back=True))

    async def up_one_level(self) -> bool:
        current = self.session.current_page
        if current is None or current.parent_id is None:
            return False
        parent = PageReference(material_id=current.material_id, page_id=current.parent_id)
        return await self.change_page(parent, PageChangeOptions(back=True))

    def get_page_with_identifier(self, identifier: str) -> Optional[Page]:
        """Find a cached page of the current material by its identifier."""
        material_id = self.session.current_material_id
        if material_id is None:
            return None
        for page in self.session.store.pages_of(material_id):
            if page.identifier == identifier:
                return page
        return None

    # Playlists

    async def start_playlist(self, entries: Sequence[PlaylistEntry], start: bool = True) -> PlaylistPageSource:
        """
        Switch to playlist traversal.

        Args:
            entries: Playlist pages in order
            start: Move to the first entry right away
        """
        source = PlaylistPageSource(entries)
        self.session.page_source = source
        self.session.listeners.dispatch(ListenerKind.PLAYLIST_CHANGED, source)
        logger.info(f"Playlist started with {len(source.entries)} page(s)")

        if start:
            await self.go_to_next_page()
        return source

    def stop_playlist(self) -> None:
        self.session.page_source = DefaultPageSource(self.session)
        self.session.listeners.dispatch(ListenerKind.PLAYLIST_CHANGED, None)

    # Browser integration

    async def handle_pop_state(self, state: Optional[Dict[str, Any]]) -> bool:
        """
        Replay a history entry after back/forward.

        The replayed transition never adds a history entry of its own.
        """
        if not state:
            return False
        if "pageId" in state:
            return await self.change_page(str(state["pageId"]), PageChangeOptions(add_to_history=False))
        if "extraPage" in state:
            return await self.open_extra_page(state["extraPage"], add_to_history=False)
        return False

    def set_font_size(self, size: int) -> None:
        if size == self.session.font_size:
            return
        self.session.font_size = size
        self.session.listeners.dispatch(ListenerKind.FONT_SIZE, size)
