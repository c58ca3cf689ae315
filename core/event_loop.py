"""
Event Loop
==========
Single-threaded cooperative scheduler.

Everything the unroller does runs on one thread, interleaved with the host
page's own rendering: scroll notifications and timer ticks are callbacks
queued here. Waiting between callbacks is delegated to ``sleep`` so the
Playwright worker can hand control back to the browser
(``page.wait_for_timeout``) instead of blocking it.

Built on :class:`sched.scheduler`; times are exposed in milliseconds to match
the ``*_ms`` settings.
"""

import sched
import time
import logging
import traceback
from typing import Callable, Optional

logger = logging.getLogger('event_loop')


class Handle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, scheduler: sched.scheduler):
        self._scheduler = scheduler
        self._event = None
        self.cancelled = False
        self.done = False

    def cancel(self):
        if self.cancelled or self.done:
            return
        self.cancelled = True
        try:
            self._scheduler.cancel(self._event)
        except ValueError:
            # already popped from the queue
            pass


class EventLoop:

    def __init__(self,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self._clock = clock
        self._sleep = sleep
        self._scheduler = sched.scheduler(clock, self._delay)

    def _delay(self, seconds: float):
        # sched calls delayfunc(0) between events; nothing to yield there
        if seconds > 0:
            self._sleep(seconds)

    # ── Scheduling ────────────────────────────────────────────────────────

    def call_later(self, delay_ms: float, callback: Callable, *args) -> Handle:
        handle = Handle(self._scheduler)
        handle._event = self._scheduler.enter(
            max(delay_ms, 0) / 1000.0, 0, self._invoke, (handle, callback, args))
        return handle

    def call_soon(self, callback: Callable, *args) -> Handle:
        return self.call_later(0, callback, *args)

    def _invoke(self, handle: Handle, callback: Callable, args: tuple):
        handle.done = True
        if handle.cancelled:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Callback {getattr(callback, '__name__', callback)} failed: {e}")
            logger.debug(traceback.format_exc())

    # ── Running ───────────────────────────────────────────────────────────

    def time_ms(self) -> float:
        return self._clock() * 1000.0

    def pending(self) -> int:
        return len(self._scheduler.queue)

    def run_ready(self) -> Optional[float]:
        """Run every due callback. Returns ms until the next one, or None."""
        delay = self._scheduler.run(blocking=False)
        return None if delay is None else delay * 1000.0

    def run_until(self, predicate: Callable[[], bool],
                  timeout_ms: Optional[float] = None) -> bool:
        """Process callbacks until ``predicate()`` holds.

        Returns False on timeout, or when the queue drains without the
        predicate becoming true.
        """
        deadline = None if timeout_ms is None else self.time_ms() + timeout_ms
        while True:
            next_ms = self.run_ready()
            if predicate():
                return True
            now = self.time_ms()
            if deadline is not None and now >= deadline:
                return False
            if next_ms is None and deadline is None:
                return False
            wait = next_ms if next_ms is not None else deadline - now
            if deadline is not None:
                wait = min(wait, deadline - now)
            self._sleep(max(wait, 0) / 1000.0)

    def run_for(self, duration_ms: float):
        self.run_until(lambda: False, duration_ms)
