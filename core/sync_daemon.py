"""
Sync Daemon
===========
Keeps injected copies in step with what the host currently renders.

Each tick pairs every host-rendered item with the injected copy at the same
offset in the same section and copies the host's content over when it
differs. The next tick is armed only after the current one finishes.
"""

import logging
from typing import Optional

from core.event_loop import EventLoop, Handle
from core.host import ListHost
from core.tree_locator import TreeLocator, Section

logger = logging.getLogger('sync_daemon')

DEFAULT_INTERVAL_MS = 10


class SyncDaemon:

    def __init__(self, host: ListHost, locator: TreeLocator, loop: EventLoop,
                 interval_ms: float = DEFAULT_INTERVAL_MS):
        self.host = host
        self.locator = locator
        self.loop = loop
        self.interval_ms = interval_ms
        self.ticks = 0
        self._handle: Optional[Handle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> bool:
        if self.running:
            return False
        logger.info(f"Sync daemon started (every {self.interval_ms}ms)")
        self._arm()
        return True

    def stop(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.info(f"Sync daemon stopped after {self.ticks} ticks")

    def _arm(self):
        self._handle = self.loop.call_later(self.interval_ms, self._run_tick)

    def _run_tick(self):
        if self.host.is_closed():
            self._handle = None
            logger.info("Host closed, sync daemon exiting")
            return
        try:
            self.tick()
        except Exception as e:
            logger.warning(f"Sync tick failed: {e}")
        if self._handle is not None:
            self._arm()

    def tick(self) -> int:
        """One reconciliation pass. Returns the number of refreshed copies."""
        self.ticks += 1
        refreshed = 0

        def visit(section: Section):
            nonlocal refreshed
            copies = {}
            for copy in section.injected_items():
                copies.setdefault(copy.position_key, copy)
            if not copies:
                return
            for item in section.host_items():
                copy = copies.get(item.position_key)
                if copy is None or copy.content == item.content:
                    continue
                if self.host.set_injected_content(section.section_id, copy.top, item.content):
                    copy.content = item.content
                    refreshed += 1

        self.locator.walk(visit)
        if refreshed:
            logger.debug(f"Sync tick {self.ticks}: refreshed {refreshed} copies")
        return refreshed
