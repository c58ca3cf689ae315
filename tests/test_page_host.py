"""Tests for the Playwright page adapter, with the page mocked out."""
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError

from core.host import ContainerNotFound, HostError
from workers.jira_backlog import javascript, selectors
from workers.jira_backlog.page_host import PageHost


@pytest.fixture
def page():
    return MagicMock()


@pytest.fixture
def host(page, loop):
    return PageHost(page, loop, scroll_settle_ms=20)


def last_args(page):
    return page.evaluate.call_args[0][1]


class TestReading:
    def test_read_children_passes_selectors(self, page, host):
        page.evaluate.return_value = []
        assert host.read_children(with_markup=True) == []
        script, args = page.evaluate.call_args[0]
        assert script == javascript.READ_TREE_JS
        assert args['container'] == selectors.SCROLLABLE_CSS
        assert args['sectionAttr'] == 'data-testid'
        assert args['cardListAttr'] == 'data-test-id'
        assert args['withMarkup'] is True

    def test_missing_container_raises(self, page, host):
        page.evaluate.return_value = None
        with pytest.raises(ContainerNotFound):
            host.read_children()
        with pytest.raises(ContainerNotFound):
            host.scroll_metrics()

    def test_destroyed_context_becomes_host_error(self, page, host):
        page.evaluate.side_effect = PlaywrightError('Execution context was destroyed')
        with pytest.raises(HostError):
            host.read_children()
        with pytest.raises(HostError):
            host.drain_key_events()

    def test_scroll_metrics(self, page, host):
        page.evaluate.return_value = {'top': 120, 'clientHeight': 600, 'scrollHeight': 4600}
        metrics = host.scroll_metrics()
        assert (metrics.top, metrics.client_height, metrics.bottom) == (120, 600, 4000)


class TestScrolling:
    def test_changed_offset_notifies_after_settle(self, page, host, loop):
        calls = []
        host.set_scroll_listener(lambda: calls.append('scrolled'))
        page.evaluate.side_effect = [
            {'top': 0, 'clientHeight': 600, 'scrollHeight': 4600},
            1200,
        ]
        assert host.scroll_to(1200) is True
        assert last_args(page)['top'] == 1200
        loop.run_for(10)
        assert calls == []
        loop.run_for(20)
        assert calls == ['scrolled']

    def test_unchanged_offset_does_not_notify(self, page, host, loop):
        calls = []
        host.set_scroll_listener(lambda: calls.append('scrolled'))
        page.evaluate.side_effect = [
            {'top': 0, 'clientHeight': 600, 'scrollHeight': 4600},
            0,
        ]
        assert host.scroll_to(0) is False
        loop.run_for(50)
        assert calls == []

    def test_listener_removed_before_delivery(self, page, host, loop):
        calls = []
        host.set_scroll_listener(lambda: calls.append('scrolled'))
        page.evaluate.side_effect = [
            {'top': 0, 'clientHeight': 600, 'scrollHeight': 4600},
            600,
        ]
        host.scroll_to(600)
        host.clear_scroll_listener()
        loop.run_for(50)
        assert calls == []


class TestMutations:
    def test_append_items_tags_copies(self, page, host):
        page.evaluate.return_value = 2
        assert host.append_items('sprint-1', ['<div>a</div>', '<div>b</div>']) == 2
        script, args = page.evaluate.call_args[0]
        assert script == javascript.APPEND_ITEMS_JS
        assert args['sectionId'] == 'sprint-1'
        assert args['markups'] == ['<div>a</div>', '<div>b</div>']
        assert args['injectedAttr'] == selectors.INJECTED_ATTR
        assert args['zIndex'] == '-1'

    def test_set_content_and_scroll_into_view(self, page, host):
        page.evaluate.return_value = True
        assert host.set_injected_content('backlog', '80px', '<span>new</span>') is True
        assert last_args(page)['content'] == '<span>new</span>'
        assert host.scroll_into_view('backlog', '80px', True) is True
        assert last_args(page)['injected'] is True

    def test_remove_injected(self, page, host):
        page.evaluate.return_value = 5
        assert host.remove_injected('backlog') == 5


class TestKeys:
    def test_drain_returns_queued_events(self, page, host):
        page.evaluate.return_value = [{'key': 'p', 'ctrlKey': False, 'metaKey': False}]
        assert host.drain_key_events()[0]['key'] == 'p'

    def test_lost_listener_is_reinstalled(self, page, host):
        bindings = [{'key': 'p', 'modifier': False, 'phrase': 'X'}]
        host.install_key_listener(bindings)
        page.evaluate.reset_mock()
        page.evaluate.side_effect = [None, True]
        assert host.drain_key_events() == []
        script, args = page.evaluate.call_args[0]
        assert script == javascript.INSTALL_KEYS_JS
        assert args == {'bindings': bindings}

    def test_is_closed_follows_page(self, page, host):
        page.is_closed.return_value = True
        assert host.is_closed() is True
