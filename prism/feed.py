"""PR feed controller: fetch, categorize (host side), render, auto-refresh.

Overlapping fetches are allowed; whichever completes last is shown.
"""

import logging

from prism.auth import AuthController
from prism.clock import Clock
from prism.errors import is_auth_error
from prism.events import BusyChanged, EventBus, FeedRendered
from prism.host.base import Host
from prism.models import PRFeed
from prism.render import EmptyMode, Section, render_feed

LOG = logging.getLogger("prism.feed")

AUTO_REFRESH_SECONDS = 300


class FeedController:
    """Single owner of the last fetched PRFeed."""

    def __init__(
        self,
        host: Host,
        bus: EventBus,
        auth: AuthController,
        clock: Clock | None = None,
        empty_mode: EmptyMode = "hide",
        auto_refresh_seconds: float = AUTO_REFRESH_SECONDS,
    ) -> None:
        self._host = host
        self._bus = bus
        self._auth = auth
        self._clock = clock or Clock()
        self._empty_mode = empty_mode
        self._auto_refresh_seconds = auto_refresh_seconds
        self._feed = PRFeed()
        self._last_fetch_ok: bool | None = None

    @property
    def feed(self) -> PRFeed:
        return self._feed

    @property
    def last_fetch_ok(self) -> bool | None:
        """Outcome of the most recent fetch; None before the first one."""
        return self._last_fetch_ok

    async def fetch(self) -> bool:
        """Fetch and replace the feed. Returns True on success.

        Auth-shaped errors sign the user out; other errors keep the
        previous feed.
        """
        try:
            feed = await self._host.fetch_pull_requests()
        except Exception as e:
            if is_auth_error(e):
                LOG.warning("Fetch rejected, signing out: %s", e)
                await self._auth.sign_out()
            else:
                LOG.error("Failed to fetch PRs: %s", e)
            self._last_fetch_ok = False
            return False
        self._feed = feed
        self._last_fetch_ok = True
        LOG.info(
            "Fetched %d PRs (review=%d approved=%d waiting=%d drafts=%d)",
            feed.total(),
            len(feed.needs_review),
            len(feed.approved),
            len(feed.waiting_for_reviewers),
            len(feed.drafts),
        )
        self.render()
        return True

    async def refresh(self) -> bool:
        """User-triggered fetch with a busy indicator. No-op when signed out."""
        if not self._auth.is_authenticated:
            return False
        self._bus.publish(BusyChanged(True))
        try:
            return await self.fetch()
        finally:
            self._bus.publish(BusyChanged(False))

    def render(self) -> tuple[Section, ...]:
        sections = render_feed(self._feed, self._empty_mode)
        self._bus.publish(FeedRendered(self._feed, sections))
        return sections

    async def tick(self) -> bool:
        """One auto-refresh firing: fetch only when authenticated."""
        if not self._auth.is_authenticated:
            return False
        return await self.fetch()

    async def run_auto_refresh(self) -> None:
        """Fire tick() every auto_refresh_seconds until cancelled."""
        while True:
            await self._clock.sleep(self._auto_refresh_seconds)
            LOG.debug("Auto-refresh tick")
            await self.tick()
