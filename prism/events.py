"""Event bus between controllers and the view.

Controllers publish what changed; views subscribe by event type. A failing
subscriber is logged and does not stop delivery to the others.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, List, Type, TypeVar

from prism.models import AuthState, PRFeed

LOG = logging.getLogger("prism.events")


@dataclass(frozen=True)
class AuthStateChanged:
    state: AuthState


@dataclass(frozen=True)
class DeviceCodeShown:
    """User code to display (text is "Loading..." until the code arrives)."""

    text: str
    verification_uri: str | None = None


@dataclass(frozen=True)
class ConnectFailed:
    message: str


@dataclass(frozen=True)
class ConnectErrorCleared:
    pass


@dataclass(frozen=True)
class BusyChanged:
    busy: bool


@dataclass(frozen=True)
class FeedRendered:
    feed: PRFeed
    sections: tuple = field(default_factory=tuple)


E = TypeVar("E")
Handler = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register handler; returns a function that unsubscribes it."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: Any) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception as e:
                LOG.exception("Event handler for %s failed: %s", type(event).__name__, e)
