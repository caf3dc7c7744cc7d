"""
Services - Browser History

Host history integration. Entries carry either {"pageId": ...} or
{"extraPage": ...} state so back/forward can replay them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class HistoryEntry:
    """One history entry."""
    state: Dict[str, Any]
    url: Optional[str] = None


class BrowserHistory(ABC):
    """Base class for host history implementations."""

    @abstractmethod
    def push_state(self, state: Dict[str, Any], url: Optional[str] = None) -> None:
        """Add a new history entry."""
        pass

    @abstractmethod
    def replace_state(self, state: Dict[str, Any], url: Optional[str] = None) -> None:
        """Replace the current history entry."""
        pass

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Leave the current document for another URL."""
        pass


class InMemoryHistory(BrowserHistory):
    """History kept in a list, for headless hosts and tests."""

    def __init__(self):
        self.entries: List[HistoryEntry] = []
        self.index = -1
        self.location: Optional[str] = None

    def push_state(self, state: Dict[str, Any], url: Optional[str] = None) -> None:
        # Pushing drops any forward entries
        del self.entries[self.index + 1:]
        self.entries.append(HistoryEntry(dict(state), url))
        self.index = len(self.entries) - 1

    def replace_state(self, state: Dict[str, Any], url: Optional[str] = None) -> None:
        if self.index < 0:
            self.push_state(state, url)
            return
        self.entries[self.index] = HistoryEntry(dict(state), url)

    def navigate(self, url: str) -> None:
        self.location = url

    @property
    def current(self) -> Optional[HistoryEntry]:
        return self.entries[self.index] if self.index >= 0 else None

    def back(self) -> Optional[Dict[str, Any]]:
        """Step back and return the state to replay, or None at the start."""
        if self.index <= 0:
            return None
        self.index -= 1
        return dict(self.entries[self.index].state)
