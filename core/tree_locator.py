"""
Tree Locator
============
Finds the sections of the scrollable list and their rendered items.

Every traversal reads a fresh snapshot of the container, so the host is free
to add or drop sections between calls. Nodes that do not look like a content
section are skipped:

  - children without a section identity marker (leading decorations)
  - divider sections
  - sections without an item host (warned once per section)
  - sections without a card list, e.g. collapsed sprints
  - empty-state placeholders
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Set

from core.host import ListHost
from core.item_cache import Item, Origin, parse_position_key

logger = logging.getLogger('tree_locator')

DIVIDER_SUFFIX = 'divider.container'
EMPTY_SUFFIX = 'empty-card-list'


@dataclass
class Section:
    section_id: str
    items: List[Item] = field(default_factory=list)

    def host_items(self) -> List[Item]:
        return [i for i in self.items if i.origin is Origin.HOST]

    def injected_items(self) -> List[Item]:
        return [i for i in self.items if i.origin is Origin.INJECTED]


class TreeLocator:

    def __init__(self, host: ListHost,
                 divider_suffix: str = DIVIDER_SUFFIX,
                 empty_suffix: str = EMPTY_SUFFIX):
        self.host = host
        self.divider_suffix = divider_suffix
        self.empty_suffix = empty_suffix
        # ids already warned about, each is reported once per locator
        self._reported: Set[str] = set()

    def sections(self, with_markup: bool = False) -> Iterator[Section]:
        """Yield content sections in document order."""
        for raw in self.host.read_children(with_markup=with_markup):
            section_id = raw.get('sectionId')
            if not section_id:
                continue
            if section_id.endswith(self.divider_suffix):
                continue
            if not raw.get('hasItemHost'):
                if section_id not in self._reported:
                    self._reported.add(section_id)
                    logger.warning(f"Section '{section_id}' has no item host, skipping")
                continue
            if not raw.get('cardListMarker') or not raw.get('hasList'):
                # collapsed sprints render without a card list
                logger.debug(f"Section '{section_id}' has no card list, skipping")
                continue
            list_marker = raw.get('listMarker') or ''
            if list_marker.endswith(self.empty_suffix):
                continue
            yield Section(section_id, self._parse_items(section_id, raw.get('items') or []))

    def walk(self, visit: Callable[[Section], Optional[bool]],
             with_markup: bool = False) -> Optional[Section]:
        """Call ``visit`` per section; a truthy return stops the walk.

        Returns the section the walk stopped at, if any.
        """
        for section in self.sections(with_markup=with_markup):
            if visit(section):
                return section
        return None

    def _parse_items(self, section_id: str, raw_items: list) -> List[Item]:
        items = []
        for raw in raw_items:
            key = parse_position_key(raw.get('top'))
            if key is None:
                logger.debug(f"[{section_id}] item without usable offset: {raw.get('top')!r}")
                continue
            items.append(Item(
                position_key=key,
                top=raw.get('top'),
                content=raw.get('content') or '',
                markup=raw.get('markup') or '',
                origin=Origin.INJECTED if raw.get('injected') else Origin.HOST,
            ))
        return items
