"""
Jira Backlog Worker
===================
Unrolls the virtualized Jira Cloud backlog so every ticket is in the page at
once and Ctrl+F / Cmd+F can find it.

Flow:
  1. Open the board URL (a persistent profile keeps the Jira login)
  2. Wait for the scrollable backlog container
  3. Install the key bindings (Ctrl/Cmd+F, p, r, n)
  4. Optionally unroll right away (--harvest / --find)
  5. Keep serving key presses and syncing copies until the browser is closed
     or --duration runs out
"""

from typing import Dict, Any

from playwright.sync_api import Error as PlaywrightError

from core.base_worker import BaseWorker
from core.config import get_worker_settings
from core.event_loop import EventLoop
from core.host import HostError
from core.unroller import Unroller
from . import selectors
from .page_host import PageHost


class Worker(BaseWorker):
    SOURCE_NAME = "jira_backlog"
    DESCRIPTION = "Jira Cloud backlog unroller - makes every ticket searchable"

    # ══════════════════════════════════════════════════════════════════════
    #  CONFIG
    # ══════════════════════════════════════════════════════════════════════
    def _load_config(self):
        cfg = get_worker_settings(self.SOURCE_NAME)

        self.cfg = dict(cfg)
        self.cfg.setdefault('divider_suffix', selectors.DIVIDER_SUFFIX)
        self.cfg.setdefault('empty_suffix', selectors.EMPTY_SUFFIX)
        self.url              = cfg.get('url', '')
        self.timeout_nav      = cfg.get('timeout_nav_ms',      60000)
        self.timeout_harvest  = cfg.get('timeout_harvest_ms',  120000)
        self.scroll_settle_ms = cfg.get('scroll_settle_ms',    50)
        self.key_poll_ms      = cfg.get('key_poll_ms',         50)
        self.z_index          = str(cfg.get('injected_z_index', selectors.INJECTED_Z_INDEX))

    def _sleep(self, seconds: float):
        # hand control to the browser instead of blocking it
        self.page.wait_for_timeout(seconds * 1000)

    # ══════════════════════════════════════════════════════════════════════
    #  ENTRY
    # ══════════════════════════════════════════════════════════════════════
    def session(self, options: Dict[str, Any]) -> Dict[str, Any]:
        self._load_config()
        url = options.get('url') or self.url
        if not url:
            self.logger.error("No board URL: set workers.jira_backlog.url or pass --url")
            return {}

        self.logger.info(f"Opening backlog → {url}")
        self.page.goto(url, wait_until='domcontentloaded', timeout=self.timeout_nav)
        if not self.wait_for_data_load(selectors.SCROLLABLE_CSS, timeout=self.timeout_nav):
            self.logger.error("Backlog container never appeared (not logged in?)")
            return {}

        loop = EventLoop(sleep=self._sleep)
        host = PageHost(self.page, loop,
                        scroll_settle_ms=self.scroll_settle_ms,
                        injected_z_index=self.z_index)
        unroller = Unroller(host, loop, self.cfg)

        try:
            unroller.attach_keys(self.key_poll_ms)

            if options.get('harvest') or options.get('find'):
                unroller.run(phrase=options.get('find'), fresh=options.get('fresh', False))
                if not unroller.wait_idle(timeout_ms=self.timeout_harvest):
                    self.logger.warning("Unroll did not finish in time")

            duration = options.get('duration')
            if duration is None:
                self.logger.info("Ready. Close the browser window to exit.")
                loop.run_until(host.is_closed)
            elif duration > 0:
                self.logger.info(f"Ready. Session ends in {duration}s.")
                loop.run_until(host.is_closed, timeout_ms=duration * 1000)
        except (PlaywrightError, HostError) as e:
            if not self.page.is_closed():
                raise
            self.logger.info(f"Browser closed: {e}")
        finally:
            unroller.close()

        cache = unroller.cache
        return {
            'sections': {sid: len(cache.items(sid)) for sid in cache},
            'items': cache.total_items(),
            'injected': unroller.injected,
            'match': unroller.last_match.top if unroller.last_match else None,
        }
