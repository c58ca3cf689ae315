"""
Unroller
========
Wires the pipeline together for one host page:

    key press / CLI  ->  Harvester  ->  Injector (+ Sync Daemon)  ->  Finder

``settings`` is the worker's block from settings.json; every key is optional.
"""

import logging
from typing import Any, Dict, Optional

from core.dispatcher import InputDispatcher, bindings_from_settings
from core.event_loop import EventLoop, Handle
from core.finder import Finder
from core.harvester import (Harvester, HarvesterBusy, HarvestState,
                            DEFAULT_STEP_MULTIPLIER, DEFAULT_INJECT_DELAY_MS)
from core.host import ListHost
from core.injector import Injector
from core.item_cache import Item, ItemCache
from core.sync_daemon import SyncDaemon, DEFAULT_INTERVAL_MS
from core.tree_locator import TreeLocator, DIVIDER_SUFFIX, EMPTY_SUFFIX

logger = logging.getLogger('unroller')

DEFAULT_KEY_POLL_MS = 50


class Unroller:

    def __init__(self, host: ListHost, loop: EventLoop,
                 settings: Optional[Dict[str, Any]] = None):
        settings = settings or {}
        self.host = host
        self.loop = loop

        self.locator = TreeLocator(
            host,
            divider_suffix=settings.get('divider_suffix', DIVIDER_SUFFIX),
            empty_suffix=settings.get('empty_suffix', EMPTY_SUFFIX),
        )
        self.sync_daemon = SyncDaemon(
            host, self.locator, loop,
            interval_ms=settings.get('sync_interval_ms', DEFAULT_INTERVAL_MS),
        )
        self.injector = Injector(host, self.locator, self.sync_daemon)
        self.finder = Finder(host, self.locator)
        self.harvester = Harvester(
            host, self.locator, loop,
            step_multiplier=settings.get('step_multiplier', DEFAULT_STEP_MULTIPLIER),
            inject_delay_ms=settings.get('inject_delay_ms', DEFAULT_INJECT_DELAY_MS),
            on_finished=self._on_harvested,
            on_aborted=self._on_aborted,
        )
        self.dispatcher = InputDispatcher(
            bindings_from_settings(settings.get('bindings')), self.run)

        self.injected = 0
        self.runs_completed = 0
        self.last_match: Optional[Item] = None
        self._pending_phrase: Optional[str] = None
        self._in_flight = False
        self._key_handle: Optional[Handle] = None
        self._key_poll_ms = DEFAULT_KEY_POLL_MS

    @property
    def cache(self) -> ItemCache:
        return self.harvester.cache

    @property
    def idle(self) -> bool:
        return not self._in_flight

    # ══════════════════════════════════════════════════════════════════════
    #  WORKFLOW
    # ══════════════════════════════════════════════════════════════════════

    def run(self, phrase: Optional[str] = None, fresh: bool = False) -> bool:
        """Harvest (or reuse the last harvest), inject, then optionally find.

        Returns False if a run is already in progress.
        """
        if self._in_flight:
            logger.info("Unroll already in progress, request ignored")
            return False
        try:
            self.harvester.start(fresh=fresh)
        except HarvesterBusy as e:
            logger.info(f"Unroll request ignored: {e}")
            return False
        except Exception as e:
            logger.error(f"Unroll failed to start: {e}")
            return False
        # a pass aborted synchronously inside start() leaves the harvester idle
        if self.harvester.state is HarvestState.IDLE:
            return False
        self._in_flight = True
        self._pending_phrase = phrase
        return True

    def _on_harvested(self, cache: ItemCache):
        try:
            self.injected = self.injector.inject(cache)
            phrase, self._pending_phrase = self._pending_phrase, None
            if phrase:
                self.last_match = self.finder.find(phrase)
            self.runs_completed += 1
        finally:
            self._in_flight = False

    def _on_aborted(self, error: Exception):
        self._pending_phrase = None
        self._in_flight = False

    def wait_idle(self, timeout_ms: Optional[float] = None) -> bool:
        return self.loop.run_until(lambda: self.idle, timeout_ms)

    # ══════════════════════════════════════════════════════════════════════
    #  KEYS
    # ══════════════════════════════════════════════════════════════════════

    def attach_keys(self, poll_ms: float = DEFAULT_KEY_POLL_MS):
        self._key_poll_ms = poll_ms
        self.host.install_key_listener([b.to_dict() for b in self.dispatcher.bindings])
        keys = ', '.join(('Ctrl/Cmd+' if b.modifier else '') + b.key
                         for b in self.dispatcher.bindings)
        logger.info(f"Key bindings active: {keys}")
        self._key_handle = self.loop.call_later(poll_ms, self._poll_keys)

    def _poll_keys(self):
        if self.host.is_closed():
            self._key_handle = None
            return
        try:
            for event in self.host.drain_key_events():
                self.dispatcher.dispatch(event)
        except Exception as e:
            logger.warning(f"Key poll failed: {e}")
        finally:
            if self._key_handle is not None:
                self._key_handle = self.loop.call_later(self._key_poll_ms, self._poll_keys)

    def close(self):
        if self._key_handle is not None:
            self._key_handle.cancel()
            self._key_handle = None
        self.sync_daemon.stop()
        if self.harvester.cancel():
            logger.warning("Closed while a harvest pass was still running")
        self.host.clear_scroll_listener()
