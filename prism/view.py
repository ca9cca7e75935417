"""Console view: prints what the controllers publish."""

import sys
from typing import Callable, List, TextIO

from prism.events import (
    AuthStateChanged,
    BusyChanged,
    ConnectFailed,
    DeviceCodeShown,
    EventBus,
    FeedRendered,
)
from prism.models import AuthStatus
from prism.render import sections_to_text


class ConsoleView:
    """Text stand-in for the menu-bar window."""

    def __init__(self, bus: EventBus, out: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._unsubscribe: List[Callable[[], None]] = [
            bus.subscribe(AuthStateChanged, self.on_auth_state),
            bus.subscribe(DeviceCodeShown, self.on_device_code),
            bus.subscribe(ConnectFailed, self.on_connect_failed),
            bus.subscribe(BusyChanged, self.on_busy),
            bus.subscribe(FeedRendered, self.on_feed),
        ]

    def _print(self, text: str) -> None:
        print(text, file=self._out, flush=True)

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def on_auth_state(self, event: AuthStateChanged) -> None:
        if event.state.status is AuthStatus.UNAUTHENTICATED:
            self._print("Not connected to GitHub.")

    def on_device_code(self, event: DeviceCodeShown) -> None:
        if event.verification_uri:
            self._print(f"Enter code {event.text} at {event.verification_uri}")
        else:
            self._print(event.text)

    def on_connect_failed(self, event: ConnectFailed) -> None:
        self._print(event.message)

    def on_busy(self, event: BusyChanged) -> None:
        if event.busy:
            self._print("Refreshing...")

    def on_feed(self, event: FeedRendered) -> None:
        if event.feed.is_empty():
            self._print("No open pull requests.")
        else:
            self._print(sections_to_text(event.sections))
