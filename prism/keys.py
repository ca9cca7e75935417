"""Keyboard shortcuts: modifier+q quits, modifier+r refreshes.

The modifier is Cmd on macOS and Ctrl elsewhere.
"""

import sys
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict

Action = Callable[[], Awaitable[object]]


def platform_modifier(platform: str | None = None) -> str:
    return "meta" if (platform or sys.platform) == "darwin" else "ctrl"


@dataclass
class KeyEvent:
    key: str
    meta: bool = False
    ctrl: bool = False
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


class KeyBindings:
    """Maps modifier+key to an async action."""

    def __init__(self, platform: str | None = None) -> None:
        self.modifier = platform_modifier(platform)
        self._actions: Dict[str, Action] = {}

    def add(self, key: str, action: Action) -> None:
        self._actions[key.lower()] = action

    def match(self, event: KeyEvent) -> Action | None:
        if not getattr(event, self.modifier):
            return None
        return self._actions.get(event.key.lower())

    async def dispatch(self, event: KeyEvent) -> bool:
        """Run the bound action; True when the key was handled."""
        action = self.match(event)
        if action is None:
            return False
        event.prevent_default()
        await action()
        return True
