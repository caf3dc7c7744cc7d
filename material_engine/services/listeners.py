"""
Services - Listener Registry

Ordered subscription lists for page lifecycle events.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class ListenerKind(str, Enum):
    """Events a listener can subscribe to."""
    BEFORE_LOAD = "before_load"
    PAGE_CHANGED = "page_changed"
    PAGE_UPDATED = "page_updated"
    FONT_SIZE = "font_size"
    PLAYLIST_CHANGED = "playlist_changed"


@dataclass
class Subscription:
    """A registered listener."""
    callback: Callable[..., Any]
    ephemeral: bool = False


class ListenerRegistry:
    """
    Independent listener lists, dispatched in registration order.

    Ephemeral subscriptions live until the next page transition; the
    navigation controller calls prune() after each dispatch round.
    """

    def __init__(self):
        self._lists: Dict[ListenerKind, List[Subscription]] = {
            kind: [] for kind in ListenerKind
        }

    def add(
        self,
        kind: ListenerKind,
        callback: Callable[..., Any],
        remove_after_next_change: bool = False,
    ) -> Callable[..., Any]:
        self._lists[kind].append(Subscription(callback, remove_after_next_change))
        return callback

    def remove(self, kind: ListenerKind, callback: Callable[..., Any]) -> bool:
        """Unsubscribe the first matching entry. Returns True if one was removed."""
        subscriptions = self._lists[kind]
        for index, subscription in enumerate(subscriptions):
            if subscription.callback is callback:
                del subscriptions[index]
                return True
        return False

    def listeners(self, kind: ListenerKind) -> List[Callable[..., Any]]:
        return [subscription.callback for subscription in self._lists[kind]]

    def prune(self, kind: ListenerKind) -> int:
        """
        Drop ephemeral subscriptions of one list.

        Returns:
            Number of subscriptions removed
        """
        before = len(self._lists[kind])
        self._lists[kind] = [s for s in self._lists[kind] if not s.ephemeral]
        removed = before - len(self._lists[kind])
        if removed:
            logger.debug(f"Pruned {removed} ephemeral {kind.value} listener(s)")
        return removed

    def prune_all(self) -> None:
        for kind in ListenerKind:
            self.prune(kind)

    def dispatch(self, kind: ListenerKind, *args: Any) -> None:
        """
        Call every listener of a list synchronously.

        A failing listener is logged and does not stop the others.
        """
        for callback in list(self.listeners(kind)):
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"{kind.value} listener {callback!r} failed: {e}")

    async def gather_before_load(self) -> None:
        """
        Run all before-load listeners and wait for their completion handles.

        Listeners may return None, a coroutine, or any other awaitable. The
        barrier settles once every returned awaitable has settled.
        """
        handles = []
        for callback in list(self.listeners(ListenerKind.BEFORE_LOAD)):
            handle = callback()
            if inspect.isawaitable(handle):
                handles.append(handle)
        if handles:
            await asyncio.gather(*handles)
