"""
Host Interface
==============
What the unroller needs from the page that owns the virtualized list.

Workers provide a concrete host (see ``workers/jira_backlog/page_host.py``);
tests use an in-memory one. The base class owns the scroll-notification
plumbing so every host delivers "scroll position changed" the same way:
through the event loop, after the host has had ``scroll_settle_ms`` to render.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from core.event_loop import EventLoop


class HostError(Exception):
    """Raised when the host page cannot be read or driven."""


class ContainerNotFound(HostError):
    """The scrollable list container is not in the page."""


@dataclass
class ScrollMetrics:
    top: float
    client_height: float
    scroll_height: float

    @property
    def bottom(self) -> float:
        """Largest reachable scroll offset."""
        return max(self.scroll_height - self.client_height, 0)


class ListHost(ABC):

    def __init__(self, loop: EventLoop, scroll_settle_ms: float = 0):
        self.loop = loop
        self.scroll_settle_ms = scroll_settle_ms
        self._scroll_listener: Optional[Callable[[], None]] = None

    # ── Scroll notifications ──────────────────────────────────────────────

    def set_scroll_listener(self, callback: Callable[[], None]):
        self._scroll_listener = callback

    def clear_scroll_listener(self):
        self._scroll_listener = None

    def scroll_to(self, top: float) -> bool:
        """Instant seek. Returns True if the scroll offset actually changed.

        A change is followed by one notification to the current listener.
        An unchanged offset produces no notification.
        """
        before = self.scroll_metrics().top
        after = self._seek(top)
        changed = after != before
        if changed and self._scroll_listener is not None:
            self.loop.call_later(self.scroll_settle_ms, self._notify_scroll)
        return changed

    def _notify_scroll(self):
        # listener may have been detached while the notification was queued
        if self._scroll_listener is not None:
            self._scroll_listener()

    # ── Reading ───────────────────────────────────────────────────────────

    @abstractmethod
    def read_children(self, with_markup: bool = False) -> List[Dict[str, Any]]:
        """Raw description of the scroll container's children, in order."""

    @abstractmethod
    def scroll_metrics(self) -> ScrollMetrics:
        pass

    @abstractmethod
    def _seek(self, top: float) -> float:
        """Set the scroll offset without animation; return the new offset."""

    # ── Mutating the presentation tree ────────────────────────────────────

    @abstractmethod
    def append_items(self, section_id: str, markups: List[str]) -> int:
        pass

    @abstractmethod
    def remove_injected(self, section_id: str) -> int:
        pass

    @abstractmethod
    def set_injected_content(self, section_id: str, top: str, content: str) -> bool:
        pass

    @abstractmethod
    def scroll_into_view(self, section_id: str, top: str, injected: bool) -> bool:
        pass

    # ── Keys and session ──────────────────────────────────────────────────

    @abstractmethod
    def install_key_listener(self, bindings: List[Dict[str, Any]]):
        pass

    @abstractmethod
    def drain_key_events(self) -> List[Dict[str, Any]]:
        pass

    def is_closed(self) -> bool:
        return False
