"""
Playwright Page Host
====================
``ListHost`` over a live Jira backlog page.
"""

import logging
from typing import Any, Dict, List

from playwright.sync_api import Page, Error as PlaywrightError

from core.event_loop import EventLoop
from core.host import ListHost, ScrollMetrics, ContainerNotFound, HostError
from . import javascript, selectors

logger = logging.getLogger('page_host')


class PageHost(ListHost):

    def __init__(self, page: Page, loop: EventLoop,
                 container: str = selectors.SCROLLABLE_CSS,
                 scroll_settle_ms: float = 50,
                 injected_z_index: str = selectors.INJECTED_Z_INDEX):
        super().__init__(loop, scroll_settle_ms)
        self.page = page
        self.container = container
        self.injected_z_index = injected_z_index
        self._bindings: List[Dict[str, Any]] = []

    def _args(self, **extra) -> Dict[str, Any]:
        args = {
            'container': self.container,
            'sectionAttr': selectors.SECTION_ATTR,
            'cardListAttr': selectors.CARD_LIST_ATTR,
            'injectedAttr': selectors.INJECTED_ATTR,
        }
        args.update(extra)
        return args

    def _eval(self, script: str, **extra):
        return self._evaluate(script, self._args(**extra))

    def _evaluate(self, script: str, *args):
        try:
            return self.page.evaluate(script, *args)
        except PlaywrightError as e:
            # navigation or a closed tab destroys the execution context
            raise HostError(f"Page evaluation failed: {e}") from e

    # ── Reading ───────────────────────────────────────────────────────────

    def read_children(self, with_markup: bool = False) -> List[Dict[str, Any]]:
        children = self._eval(javascript.READ_TREE_JS, withMarkup=with_markup)
        if children is None:
            raise ContainerNotFound(f"No element matches {self.container}")
        return children

    def scroll_metrics(self) -> ScrollMetrics:
        result = self._eval(javascript.SCROLL_METRICS_JS)
        if result is None:
            raise ContainerNotFound(f"No element matches {self.container}")
        return ScrollMetrics(top=result['top'],
                             client_height=result['clientHeight'],
                             scroll_height=result['scrollHeight'])

    def _seek(self, top: float) -> float:
        result = self._eval(javascript.SEEK_JS, top=top)
        if result is None:
            raise ContainerNotFound(f"No element matches {self.container}")
        return result

    # ── Mutating ──────────────────────────────────────────────────────────

    def append_items(self, section_id: str, markups: List[str]) -> int:
        return self._eval(javascript.APPEND_ITEMS_JS, sectionId=section_id,
                          markups=markups, zIndex=self.injected_z_index)

    def remove_injected(self, section_id: str) -> int:
        return self._eval(javascript.REMOVE_INJECTED_JS, sectionId=section_id)

    def set_injected_content(self, section_id: str, top: str, content: str) -> bool:
        return bool(self._eval(javascript.SET_CONTENT_JS, sectionId=section_id,
                               top=top, content=content))

    def scroll_into_view(self, section_id: str, top: str, injected: bool) -> bool:
        return bool(self._eval(javascript.SCROLL_INTO_VIEW_JS, sectionId=section_id,
                               top=top, injected=injected))

    # ── Keys ──────────────────────────────────────────────────────────────

    def install_key_listener(self, bindings: List[Dict[str, Any]]):
        self._bindings = list(bindings)
        self._evaluate(javascript.INSTALL_KEYS_JS, {'bindings': self._bindings})

    def drain_key_events(self) -> List[Dict[str, Any]]:
        events = self._evaluate(javascript.DRAIN_KEYS_JS)
        if events is None:
            # page navigated (SPA route change or reload); listener is gone
            logger.info("Key listener missing, reinstalling")
            self.install_key_listener(self._bindings)
            return []
        return events

    def is_closed(self) -> bool:
        return self.page.is_closed()
