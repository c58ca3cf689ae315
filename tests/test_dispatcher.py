"""Tests for key binding dispatch."""
import pytest

from core.dispatcher import (InputDispatcher, KeyBinding, DEFAULT_BINDINGS,
                             bindings_from_settings)


def key(k, ctrl=False, meta=False):
    return {'key': k, 'ctrlKey': ctrl, 'metaKey': meta}


@pytest.fixture
def calls():
    return []


@pytest.fixture
def dispatcher(calls):
    return InputDispatcher(DEFAULT_BINDINGS, calls.append)


class TestDefaultBindings:
    @pytest.mark.parametrize('event', [key('f', ctrl=True), key('f', meta=True)])
    def test_modified_f_unrolls_without_search(self, dispatcher, calls, event):
        assert dispatcher.dispatch(event) is True
        assert calls == [None]

    @pytest.mark.parametrize('k, phrase', [
        ('p', '**READY TO PLAN**'),
        ('r', '**TO REFINE**'),
        ('n', '**NEW TO BE CATEGORISED**'),
    ])
    def test_plain_keys_search_their_phrase(self, dispatcher, calls, k, phrase):
        assert dispatcher.dispatch(key(k)) is True
        assert calls == [phrase]

    @pytest.mark.parametrize('event', [
        key('f'),                 # no modifier
        key('p', ctrl=True),      # modifier on a plain binding
        key('x'),
        {},
    ])
    def test_unbound_events_are_ignored(self, dispatcher, calls, event):
        assert dispatcher.dispatch(event) is False
        assert calls == []


class TestBindingsFromSettings:
    def test_empty_falls_back_to_defaults(self):
        assert bindings_from_settings(None) == list(DEFAULT_BINDINGS)
        assert bindings_from_settings([]) == list(DEFAULT_BINDINGS)

    def test_entries_become_bindings(self):
        bindings = bindings_from_settings([
            {'key': 'g', 'modifier': True, 'phrase': None},
            {'key': 'd', 'phrase': 'DONE'},
            {'phrase': 'no key'},
        ])
        assert bindings == [KeyBinding('g', True, None), KeyBinding('d', False, 'DONE')]

    def test_round_trip_through_dict(self):
        binding = KeyBinding('p', phrase='X')
        assert binding.to_dict() == {'key': 'p', 'modifier': False, 'phrase': 'X'}
