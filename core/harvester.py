"""
Scroll-Driven Harvester
=======================
Drives the list container from top to bottom and captures every item the
host renders along the way.

States:
  IDLE        nothing harvested yet (or the last pass was aborted)
  HARVESTING  stepping; each step waits for the scroll notification
  DONE        cache complete; later runs reuse it unless asked for a fresh pass

Step size is ``step_multiplier`` viewports. The offset only ever grows and is
clamped to the bottom, so a pass always terminates.
"""

import math
import logging
from enum import Enum
from typing import Callable, List, Optional

from core.event_loop import EventLoop
from core.host import ListHost
from core.item_cache import ItemCache
from core.tree_locator import TreeLocator, Section

logger = logging.getLogger('harvester')

DEFAULT_STEP_MULTIPLIER = 2.0
DEFAULT_INJECT_DELAY_MS = 10


class HarvestState(Enum):
    IDLE = 'idle'
    HARVESTING = 'harvesting'
    DONE = 'done'


class HarvesterBusy(RuntimeError):
    """A harvest pass is already running."""


class HarvesterCancelled(Exception):
    """A running pass was stopped from outside."""


class Harvester:

    def __init__(self, host: ListHost, locator: TreeLocator, loop: EventLoop,
                 step_multiplier: float = DEFAULT_STEP_MULTIPLIER,
                 inject_delay_ms: float = DEFAULT_INJECT_DELAY_MS,
                 on_finished: Optional[Callable[[ItemCache], None]] = None,
                 on_aborted: Optional[Callable[[Exception], None]] = None):
        self.host = host
        self.locator = locator
        self.loop = loop
        self.step_multiplier = step_multiplier
        self.inject_delay_ms = inject_delay_ms
        self.on_finished = on_finished
        self.on_aborted = on_aborted

        self.state = HarvestState.IDLE
        self.cache = ItemCache()
        self.original_position = 0.0
        self.step = 0
        self.bottom = 0.0
        self.current = 0.0
        self.offsets: List[float] = []

    @property
    def steps(self) -> int:
        return len(self.offsets)

    def start(self, fresh: bool = False):
        """Begin a pass, or hand the finished cache on if one exists.

        Raises HarvesterBusy while a pass is in flight.
        """
        if self.state is HarvestState.HARVESTING:
            raise HarvesterBusy("harvest pass already in progress")

        if self.state is HarvestState.DONE and not fresh:
            logger.info(f"Reusing harvested cache: {self.cache}")
            self._schedule_finished()
            return

        metrics = self.host.scroll_metrics()
        self.cache = ItemCache()
        self.offsets = []
        self.original_position = metrics.top
        self.step = max(int(math.floor(metrics.client_height * self.step_multiplier)), 1)
        self.bottom = metrics.bottom
        self.current = 0.0
        self.state = HarvestState.HARVESTING
        logger.info(f"Harvest started: step={self.step}px bottom={self.bottom}px "
                    f"origin={self.original_position}px")

        self.host.set_scroll_listener(self._on_scroll)
        try:
            moved = self.host.scroll_to(self.current)
        except Exception as e:
            self._abort(e)
            raise
        if not moved:
            # already at the top: no notification will come
            self._on_scroll()

    # ── Stepping ──────────────────────────────────────────────────────────

    def _on_scroll(self):
        if self.state is not HarvestState.HARVESTING:
            return
        try:
            self._collect()
            if self.current >= self.bottom:
                self._finish()
                return
            self.current = min(self.current + self.step, self.bottom)
            moved = self.host.scroll_to(self.current)
        except Exception as e:
            self._abort(e)
            return

        if not moved:
            # offset did not change (list shrank?): step again without a notification
            self.loop.call_soon(self._on_scroll)

    def _collect(self):
        self.offsets.append(self.current)
        added = 0

        def visit(section: Section):
            nonlocal added
            self.cache.ensure_section(section.section_id)
            for item in section.host_items():
                if self.cache.append_if_absent(section.section_id, item):
                    added += 1

        self.locator.walk(visit, with_markup=True)
        logger.debug(f"Step at {self.current}px: +{added} items ({self.cache})")

    # ── Finishing ─────────────────────────────────────────────────────────

    def _finish(self):
        self.state = HarvestState.DONE
        self.host.clear_scroll_listener()
        self.host.scroll_to(self.original_position)
        logger.info(f"Harvest done in {self.steps} steps: {self.cache}")
        self._schedule_finished()

    def cancel(self) -> bool:
        """Stop a running pass and put the list back where it was.

        Returns False if no pass was running.
        """
        if self.state is not HarvestState.HARVESTING:
            return False
        self._abort(HarvesterCancelled(f"cancelled at {self.current}px"))
        return True

    def _abort(self, error: Exception):
        logger.error(f"Harvest aborted at {self.current}px: {error}")
        self.state = HarvestState.IDLE
        self.host.clear_scroll_listener()
        try:
            self.host.scroll_to(self.original_position)
        except Exception as e:
            logger.debug(f"Could not restore offset {self.original_position}px: {e}")
        if self.on_aborted is not None:
            self.on_aborted(error)

    def _schedule_finished(self):
        if self.on_finished is not None:
            self.loop.call_later(self.inject_delay_ms, self.on_finished, self.cache)
