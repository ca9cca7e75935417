"""Shared fixtures: in-memory host and a clock that never really sleeps."""

import asyncio
from typing import Any, Callable, List

import pytest

from prism.clock import Clock
from prism.events import EventBus
from prism.host.base import Host
from prism.models import DeviceCode, PRFeed


class FakeClock(Clock):
    """Time advances only when something sleeps on it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.t = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.t

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds
        await asyncio.sleep(0)


class FakeHost(Host):
    """Host with scripted results; records every command call."""

    def __init__(self) -> None:
        self.token: str | Exception = ""
        self.device_code: DeviceCode | Exception = DeviceCode(
            device_code="dev-123",
            user_code="ABCD-1234",
            verification_uri="https://github.com/login/device",
            interval=5,
            expires_in=900,
        )
        # consumed one per poll; the last one repeats
        self.poll_results: List[Any] = ["gho_token"]
        self.feeds: List[Any] = [PRFeed()]
        self.open_url_error: Exception | None = None
        self.open_github_error: Exception | None = None
        self.quit_error: Exception | None = None
        self.calls: List[tuple] = []

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)

    async def get_github_token(self) -> str:
        self.calls.append(("get_github_token",))
        if isinstance(self.token, Exception):
            raise self.token
        return self.token

    async def request_device_code(self) -> DeviceCode:
        self.calls.append(("request_device_code",))
        if isinstance(self.device_code, Exception):
            raise self.device_code
        return self.device_code

    async def poll_for_token(self, device_code: str, interval: int, expires_in: int) -> str:
        self.calls.append(("poll_for_token", device_code, interval, expires_in))
        result = self.poll_results.pop(0) if len(self.poll_results) > 1 else self.poll_results[0]
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_pull_requests(self) -> PRFeed:
        self.calls.append(("fetch_pull_requests",))
        result = self.feeds.pop(0) if len(self.feeds) > 1 else self.feeds[0]
        if isinstance(result, Exception):
            raise result
        if isinstance(result, dict):
            return PRFeed.model_validate(result)
        return result

    async def open_url(self, url: str) -> None:
        self.calls.append(("open_url", url))
        if self.open_url_error:
            raise self.open_url_error

    async def open_github(self) -> None:
        self.calls.append(("open_github",))
        if self.open_github_error:
            raise self.open_github_error

    async def quit_app(self) -> None:
        self.calls.append(("quit_app",))
        if self.quit_error:
            raise self.quit_error

    async def clear_github_token(self) -> None:
        self.calls.append(("clear_github_token",))


class Recorder:
    """Collects every published event of the subscribed types."""

    def __init__(self, bus: EventBus, *types: type) -> None:
        self.events: List[Any] = []
        for t in types:
            bus.subscribe(t, self.events.append)

    def of(self, event_type: type) -> List[Any]:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def record(bus: EventBus) -> Callable[..., Recorder]:
    """record(EventType, ...) -> Recorder subscribed on the shared bus."""

    def _make(*types: type) -> Recorder:
        return Recorder(bus, *types)

    return _make
