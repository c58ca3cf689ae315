"""Shared fixtures: a fake clock and an in-memory virtualized list."""
import math
import re
from typing import Dict, List, Optional

import pytest

from core.event_loop import EventLoop
from core.host import ListHost, ScrollMetrics, ContainerNotFound

MARKUP_RE = re.compile(r'^<div style="top: ([^"]*)">(.*)</div>$', re.DOTALL)


def card_markup(top: str, content: str) -> str:
    return f'<div style="top: {top}">{content}</div>'


class FakeClock:
    def __init__(self):
        self.ns = 0

    def now(self) -> float:
        return self.ns / 1e9

    def sleep(self, seconds: float):
        self.ns += max(1, math.ceil(seconds * 1e9))


class FakeCard:
    """A logical list item. ``doc_offset`` decides when the host renders it."""

    def __init__(self, doc_offset: float, top: float, content: str):
        self.doc_offset = doc_offset
        self.top = f'{top:g}px'
        self.content = content


class FakeSection:
    def __init__(self, section_id: str, cards: List[FakeCard] = None, kind: str = 'section'):
        self.section_id = section_id
        self.cards = cards or []
        self.kind = kind                      # section | divider | empty | broken | collapsed
        self.injected: List[Dict[str, str]] = []


class FakeHost(ListHost):
    """Renders only cards whose ``doc_offset`` lies in
    ``[scroll_top, scroll_top + render_span)``, like a virtualized list."""

    def __init__(self, loop: EventLoop, sections: List[FakeSection],
                 client_height: float = 100, scroll_height: float = 1100,
                 render_span: Optional[float] = None, top: float = 0,
                 decorations: int = 2, scroll_settle_ms: float = 5):
        super().__init__(loop, scroll_settle_ms)
        self.sections = sections
        self.client_height = client_height
        self.scroll_height = scroll_height
        self.render_span = render_span if render_span is not None else client_height * 2
        self.top = top
        self.decorations = decorations
        self.missing = False
        self.closed = False
        self.seeks: List[float] = []
        self.reads = 0
        self.scrolled_into_view = []
        self.bindings = []
        self.key_queue = []
        self.read_errors: List[Exception] = []     # raised once each, in order
        self.drain_errors: List[Exception] = []

    # ── helpers for tests ────────────────────────────────────────────────

    def section(self, section_id: str) -> Optional[FakeSection]:
        for s in self.sections:
            if s.section_id == section_id:
                return s
        return None

    def rendered(self, section: FakeSection) -> List[FakeCard]:
        return [c for c in section.cards
                if self.top <= c.doc_offset < self.top + self.render_span]

    def edit(self, section_id: str, top: str, content: str):
        for card in self.section(section_id).cards:
            if card.top == top:
                card.content = content

    def press(self, key: str, ctrl: bool = False, meta: bool = False):
        held = ctrl or meta
        if any(b['key'] == key and b['modifier'] == held for b in self.bindings):
            self.key_queue.append({'key': key, 'ctrlKey': ctrl, 'metaKey': meta})

    # ── ListHost ─────────────────────────────────────────────────────────

    def read_children(self, with_markup: bool = False):
        if self.missing:
            raise ContainerNotFound('container gone')
        self.reads += 1
        if self.read_errors:
            raise self.read_errors.pop(0)
        out = [{'sectionId': None, 'hasItemHost': False, 'cardListMarker': None,
                'hasList': False, 'listMarker': None, 'items': []}
               for _ in range(self.decorations)]
        for s in self.sections:
            sid = s.section_id + ('.divider.container' if s.kind == 'divider' else '')
            if s.kind == 'broken':
                out.append({'sectionId': sid, 'hasItemHost': False, 'cardListMarker': None,
                            'hasList': False, 'listMarker': None, 'items': []})
                continue
            if s.kind == 'collapsed':
                out.append({'sectionId': sid, 'hasItemHost': True, 'cardListMarker': None,
                            'hasList': False, 'listMarker': None, 'items': []})
                continue
            items = []
            for card in self.rendered(s):
                item = {'top': card.top, 'content': card.content, 'injected': False}
                if with_markup:
                    item['markup'] = card_markup(card.top, card.content)
                items.append(item)
            for copy in s.injected:
                item = {'top': copy['top'], 'content': copy['content'], 'injected': True}
                if with_markup:
                    item['markup'] = card_markup(copy['top'], copy['content'])
                items.append(item)
            out.append({
                'sectionId': sid,
                'hasItemHost': True,
                'cardListMarker': 'software-backlog.card-list',
                'hasList': True,
                'listMarker': 'backlog.empty-card-list' if s.kind == 'empty' else None,
                'items': items,
            })
        return out

    def scroll_metrics(self) -> ScrollMetrics:
        if self.missing:
            raise ContainerNotFound('container gone')
        return ScrollMetrics(self.top, self.client_height, self.scroll_height)

    def _seek(self, top: float) -> float:
        bottom = max(self.scroll_height - self.client_height, 0)
        self.top = min(max(top, 0), bottom)
        self.seeks.append(self.top)
        return self.top

    def append_items(self, section_id: str, markups: List[str]) -> int:
        s = self.section(section_id)
        if s is None:
            return -1
        for markup in markups:
            top, content = MARKUP_RE.match(markup).groups()
            s.injected.append({'top': top, 'content': content})
        return len(markups)

    def remove_injected(self, section_id: str) -> int:
        s = self.section(section_id)
        if s is None:
            return 0
        removed = len(s.injected)
        s.injected = []
        return removed

    def set_injected_content(self, section_id: str, top: str, content: str) -> bool:
        s = self.section(section_id)
        for copy in s.injected if s else []:
            if copy['top'] == top:
                copy['content'] = content
                return True
        return False

    def scroll_into_view(self, section_id: str, top: str, injected: bool) -> bool:
        self.scrolled_into_view.append((section_id, top, injected))
        return True

    def install_key_listener(self, bindings):
        self.bindings = list(bindings)

    def drain_key_events(self):
        if self.drain_errors:
            raise self.drain_errors.pop(0)
        events, self.key_queue = self.key_queue, []
        return events

    def is_closed(self) -> bool:
        return self.closed


def spread_section(section_id: str, count: int, spacing: float = 50,
                   first_offset: float = 0, prefix: str = 'Ticket') -> FakeSection:
    """``count`` cards, ``spacing`` px apart both on screen and in the section."""
    cards = [FakeCard(first_offset + i * spacing, i * spacing, f'{prefix} {section_id}-{i}')
             for i in range(count)]
    return FakeSection(section_id, cards)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop(clock):
    return EventLoop(clock=clock.now, sleep=clock.sleep)
