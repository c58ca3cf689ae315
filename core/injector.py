"""
Injector
========
Materializes the harvested cache inside the live list.

Copies go after the host's own items, tagged and stacked behind host content
by the host adapter. Copies from an earlier run are removed first, so
injecting the same cache twice leaves one set of copies per section.
"""

import logging
from typing import Optional

from core.host import ListHost
from core.item_cache import ItemCache
from core.tree_locator import TreeLocator, Section
from core.sync_daemon import SyncDaemon

logger = logging.getLogger('injector')


class Injector:

    def __init__(self, host: ListHost, locator: TreeLocator,
                 sync_daemon: Optional[SyncDaemon] = None):
        self.host = host
        self.locator = locator
        self.sync_daemon = sync_daemon

    def inject(self, cache: ItemCache) -> int:
        """Insert every cached item into its live section. Returns the count."""
        total = 0
        seen = set()

        def visit(section: Section):
            nonlocal total
            seen.add(section.section_id)
            if section.section_id not in cache:
                return
            items = cache.items(section.section_id)
            removed = self.host.remove_injected(section.section_id)
            count = self.host.append_items(section.section_id, [i.markup for i in items])
            if count < 0:
                logger.warning(f"Section '{section.section_id}' vanished before injection")
                return
            total += count
            logger.info(f"Section '{section.section_id}': injected {count} items "
                        f"(replaced {removed})")

        self.locator.walk(visit)

        for section_id in cache:
            if section_id not in seen:
                logger.debug(f"Cached section '{section_id}' is not in the page, skipped")

        logger.info(f"Injected {total} items into {len(seen & set(cache))} sections")
        if self.sync_daemon is not None:
            self.sync_daemon.start()
        return total
