"""
Input Dispatcher
================
Maps key presses captured in the page to unroller actions.

A binding with a phrase runs harvest + inject and then jumps to the first
item containing the phrase; a binding without one only harvests and injects
(so the browser's own find can take over).
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger('dispatcher')


@dataclass(frozen=True)
class KeyBinding:
    key: str
    modifier: bool = False          # Ctrl or Cmd held
    phrase: Optional[str] = None

    def matches(self, event: Dict[str, Any]) -> bool:
        held = bool(event.get('ctrlKey') or event.get('metaKey'))
        return event.get('key') == self.key and held == self.modifier

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_BINDINGS = (
    KeyBinding('f', modifier=True),
    KeyBinding('p', phrase='**READY TO PLAN**'),
    KeyBinding('r', phrase='**TO REFINE**'),
    KeyBinding('n', phrase='**NEW TO BE CATEGORISED**'),
)


def bindings_from_settings(entries: Optional[List[Dict[str, Any]]]) -> List[KeyBinding]:
    """Build bindings from the ``bindings`` list in settings.json."""
    if not entries:
        return list(DEFAULT_BINDINGS)
    bindings = []
    for entry in entries:
        key = entry.get('key')
        if not key:
            logger.warning(f"Ignoring key binding without a key: {entry}")
            continue
        bindings.append(KeyBinding(
            key=key,
            modifier=bool(entry.get('modifier', False)),
            phrase=entry.get('phrase') or None,
        ))
    return bindings


class InputDispatcher:

    def __init__(self, bindings: List[KeyBinding],
                 action: Callable[[Optional[str]], Any]):
        self.bindings = list(bindings)
        self.action = action

    def match(self, event: Dict[str, Any]) -> Optional[KeyBinding]:
        for binding in self.bindings:
            if binding.matches(event):
                return binding
        return None

    def dispatch(self, event: Dict[str, Any]) -> bool:
        """Run the bound action for ``event``. Returns False for unbound keys."""
        binding = self.match(event)
        if binding is None:
            return False
        logger.info(f"Key '{event.get('key')}' -> "
                    f"{'find ' + repr(binding.phrase) if binding.phrase else 'unroll'}")
        self.action(binding.phrase)
        return True
