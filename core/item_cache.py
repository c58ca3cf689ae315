"""
Item Cache
==========
Harvested list items, keyed by section and deduplicated by position.

The host exposes no stable item id, so an item's layout offset (its CSS
``top``) is used as identity. Within one section the cache holds at most one
item per offset, kept in ascending offset order (= visual top-to-bottom order).
"""

import re
import logging
from bisect import bisect_left
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Iterator

logger = logging.getLogger('item_cache')

_OFFSET_RE = re.compile(r'^\s*(-?\d+(?:\.\d+)?)\s*(?:px)?\s*$')


class Origin(str, Enum):
    HOST = 'host'
    INJECTED = 'injected'


@dataclass
class Item:
    """One list entry as seen in the page."""
    position_key: float
    top: str
    content: str
    markup: str = ''
    origin: Origin = Origin.HOST

    @property
    def injected(self) -> bool:
        return self.origin is Origin.INJECTED

    def snapshot(self) -> 'Item':
        """Independent copy; the live node will be recycled by the host."""
        return replace(self)


def parse_position_key(top) -> Optional[float]:
    """Turn a CSS offset like ``'120px'`` into a comparable key."""
    if top is None:
        return None
    if isinstance(top, (int, float)):
        return float(top)
    match = _OFFSET_RE.match(str(top))
    if not match:
        return None
    return float(match.group(1))


class ItemCache:
    """Mapping section id -> ordered list of harvested items."""

    def __init__(self):
        self._sections: Dict[str, List[Item]] = {}

    def ensure_section(self, section_id: str) -> List[Item]:
        if section_id not in self._sections:
            self._sections[section_id] = []
        return self._sections[section_id]

    def append_if_absent(self, section_id: str, item: Item) -> bool:
        """Store a snapshot of ``item`` unless its offset is already cached.

        Returns True when the item was added.
        """
        items = self.ensure_section(section_id)
        keys = [i.position_key for i in items]
        idx = bisect_left(keys, item.position_key)
        if idx < len(keys) and keys[idx] == item.position_key:
            return False
        items.insert(idx, item.snapshot())
        return True

    def items(self, section_id: str) -> List[Item]:
        return list(self._sections.get(section_id, []))

    def section_ids(self) -> List[str]:
        return list(self._sections)

    def total_items(self) -> int:
        return sum(len(v) for v in self._sections.values())

    def __contains__(self, section_id) -> bool:
        return section_id in self._sections

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sections)

    def __repr__(self) -> str:
        return f"ItemCache(sections={len(self)}, items={self.total_items()})"
