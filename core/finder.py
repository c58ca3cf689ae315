"""
Finder
======
Jump to the first rendered item whose content contains a phrase.
"""

import logging
from typing import Optional

from core.host import ListHost
from core.item_cache import Item
from core.tree_locator import TreeLocator, Section

logger = logging.getLogger('finder')


class Finder:

    def __init__(self, host: ListHost, locator: TreeLocator):
        self.host = host
        self.locator = locator

    def find(self, text: str) -> Optional[Item]:
        match: Optional[Item] = None

        def visit(section: Section) -> bool:
            nonlocal match
            for item in section.items:
                if text in item.content:
                    match = item
                    self.host.scroll_into_view(section.section_id, item.top, item.injected)
                    return True
            return False

        section = self.locator.walk(visit)
        if match is None:
            logger.debug(f"No item contains {text!r}")
        else:
            logger.info(f"Found {text!r} in '{section.section_id}' at {match.top}")
        return match
