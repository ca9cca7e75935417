"""Tests for FeedController: fetch, refresh, render and auto-refresh."""

import asyncio

import pytest

from prism.auth import AuthController
from prism.errors import HostCommandError
from prism.events import BusyChanged, FeedRendered
from prism.feed import FeedController
from prism.models import AuthStatus, PRFeed

FIX_BUG = {
    "needs_review": [{"title": "fix bug", "url": "https://x/1"}],
    "approved": [],
    "waiting_for_reviewers": [],
    "drafts": [],
}


def _signed_in(host, bus, clock, **feed_kwargs):
    host.token = "gho_stored"
    auth = AuthController(host, bus, clock=clock)
    feed = FeedController(host, bus, auth, clock=clock, **feed_kwargs)
    auth.on_authenticated = feed.fetch
    return auth, feed


def test_fetch_scenario_renders_single_needs_review_entry(host, bus, clock, record) -> None:
    rec = record(FeedRendered)
    host.feeds = [FIX_BUG]
    auth, feed = _signed_in(host, bus, clock)

    asyncio.run(auth.check_initial_auth())

    sections = rec.of(FeedRendered)[-1].sections
    by_key = {s.key: s for s in sections}
    assert by_key["needs_review"].visible is True
    assert [e.title_html for e in by_key["needs_review"].entries] == ["fix bug"]
    assert by_key["needs_review"].entries[0].url == "https://x/1"
    for key in ("approved", "waiting_for_reviewers", "drafts"):
        assert by_key[key].visible is False
        assert by_key[key].entries == ()


def test_fetch_replaces_feed_wholesale(host, bus, clock) -> None:
    second = {"approved": [{"title": "ship it", "url": "https://x/2", "status": "approved"}]}
    host.feeds = [FIX_BUG, second]
    auth, feed = _signed_in(host, bus, clock)

    async def scenario() -> None:
        await auth.check_initial_auth()
        await feed.fetch()

    asyncio.run(scenario())

    assert feed.feed.needs_review == ()
    assert [pr.title for pr in feed.feed.approved] == ["ship it"]


@pytest.mark.parametrize(
    "message",
    ["Not authenticated", "401: Bad credentials", "Failed to fetch PRs: HTTP 401 Unauthorized"],
)
def test_auth_shaped_fetch_error_signs_out(host, bus, clock, message) -> None:
    host.feeds = [FIX_BUG, HostCommandError(message)]
    auth, feed = _signed_in(host, bus, clock)

    async def scenario() -> bool:
        await auth.check_initial_auth()
        return await feed.fetch()

    assert asyncio.run(scenario()) is False
    assert auth.state.status is AuthStatus.UNAUTHENTICATED


def test_unrelated_fetch_error_keeps_state_and_feed(host, bus, clock, record) -> None:
    host.feeds = [FIX_BUG, HostCommandError("Failed to fetch PRs: connection reset")]
    auth, feed = _signed_in(host, bus, clock)

    async def scenario() -> bool:
        await auth.check_initial_auth()
        rec = record(FeedRendered)
        before = feed.feed
        ok = await feed.fetch()
        assert feed.feed is before
        assert rec.events == []
        return ok

    assert asyncio.run(scenario()) is False
    assert auth.state.status is AuthStatus.AUTHENTICATED
    assert [pr.title for pr in feed.feed.needs_review] == ["fix bug"]


def test_invalid_feed_from_host_is_a_non_auth_error(host, bus, clock) -> None:
    """Overlapping categories fail validation; the previous feed stays."""
    overlap = {
        "needs_review": [{"title": "a", "url": "https://x/1"}],
        "drafts": [{"title": "a", "url": "https://x/1"}],
    }
    host.feeds = [FIX_BUG, overlap]
    auth, feed = _signed_in(host, bus, clock)

    async def scenario() -> bool:
        await auth.check_initial_auth()
        return await feed.fetch()

    assert asyncio.run(scenario()) is False
    assert auth.is_authenticated
    assert len(feed.feed.needs_review) == 1


class TestRefresh:
    def test_noop_when_not_authenticated(self, host, bus, clock, record) -> None:
        rec = record(BusyChanged)
        auth = AuthController(host, bus, clock=clock)
        feed = FeedController(host, bus, auth, clock=clock)

        assert asyncio.run(feed.refresh()) is False

        assert host.count("fetch_pull_requests") == 0
        assert rec.events == []

    def test_busy_indicator_wraps_successful_fetch(self, host, bus, clock, record) -> None:
        auth, feed = _signed_in(host, bus, clock)

        async def scenario() -> bool:
            await auth.check_initial_auth()
            rec = record(BusyChanged)
            ok = await feed.refresh()
            assert [e.busy for e in rec.events] == [True, False]
            return ok

        assert asyncio.run(scenario()) is True
        assert host.count("fetch_pull_requests") == 2

    def test_busy_indicator_cleared_on_failure(self, host, bus, clock, record) -> None:
        host.feeds = [PRFeed(), HostCommandError("500: boom")]
        auth, feed = _signed_in(host, bus, clock)

        async def scenario() -> bool:
            await auth.check_initial_auth()
            rec = record(BusyChanged)
            ok = await feed.refresh()
            assert [e.busy for e in rec.events] == [True, False]
            return ok

        assert asyncio.run(scenario()) is False


class TestAutoRefresh:
    def test_tick_fetches_when_authenticated(self, host, bus, clock) -> None:
        auth, feed = _signed_in(host, bus, clock)

        async def scenario() -> None:
            await auth.check_initial_auth()
            await feed.tick()

        asyncio.run(scenario())

        assert host.count("fetch_pull_requests") == 2

    def test_tick_is_noop_when_unauthenticated(self, host, bus, clock) -> None:
        auth = AuthController(host, bus, clock=clock)
        feed = FeedController(host, bus, auth, clock=clock)

        assert asyncio.run(feed.tick()) is False
        assert host.count("fetch_pull_requests") == 0

    def test_loop_waits_interval_between_ticks(self, host, bus, clock) -> None:
        auth, feed = _signed_in(host, bus, clock)

        async def scenario() -> None:
            await auth.check_initial_auth()
            task = asyncio.create_task(feed.run_auto_refresh())
            while host.count("fetch_pull_requests") < 3:
                await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert clock.sleeps[:2] == [300, 300]


def test_render_placeholder_mode(host, bus, clock) -> None:
    host.feeds = [FIX_BUG]
    auth, feed = _signed_in(host, bus, clock, empty_mode="placeholder")

    asyncio.run(auth.check_initial_auth())

    sections = feed.render()
    assert all(s.visible for s in sections)
    assert [s.placeholder for s in sections] == [None, "None", "None", "None"]
