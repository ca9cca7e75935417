"""Application wiring: host, event bus, controllers, shortcuts and fallbacks."""

import asyncio
import logging
import webbrowser

from prism.auth import AuthController
from prism.clock import Clock
from prism.config import AppConfig
from prism.events import EventBus
from prism.feed import FeedController
from prism.host.base import Host
from prism.host.github import GitHubHost
from prism.keys import KeyBindings, KeyEvent
from prism.render import Entry

LOG = logging.getLogger("prism.app")


class PrismApp:
    """Owns one AuthController and one FeedController sharing a host and bus."""

    def __init__(
        self,
        config: AppConfig,
        host: Host | None = None,
        bus: EventBus | None = None,
        clock: Clock | None = None,
        platform: str | None = None,
    ) -> None:
        self.config = config
        self.quit_event = asyncio.Event()
        self.host = host or GitHubHost(config.github, quit_event=self.quit_event)
        self.bus = bus or EventBus()
        self.clock = clock or Clock()
        self.auth = AuthController(
            self.host,
            self.bus,
            clock=self.clock,
            error_display_seconds=config.ui.error_display_seconds,
        )
        self.feed = FeedController(
            self.host,
            self.bus,
            self.auth,
            clock=self.clock,
            empty_mode=config.feed.empty_sections,
            auto_refresh_seconds=config.feed.auto_refresh_seconds,
        )
        self.auth.on_authenticated = self.feed.fetch
        self.keys = KeyBindings(platform)
        self.keys.add("q", self.quit)
        self.keys.add("r", self.feed.refresh)
        self._auto_refresh: asyncio.Task | None = None

    async def start(self) -> None:
        """Check the stored token (fetching if present) and start auto-refresh."""
        await self.auth.check_initial_auth()
        if self._auto_refresh is None:
            self._auto_refresh = asyncio.get_running_loop().create_task(self.feed.run_auto_refresh())

    async def stop(self) -> None:
        if self._auto_refresh is not None:
            self._auto_refresh.cancel()
            try:
                await self._auto_refresh
            except asyncio.CancelledError:
                pass
            self._auto_refresh = None

    async def run(self, connect: bool = False) -> bool:
        """Start, then wait until quit is requested.

        With connect=True and no stored token, the device flow starts
        right away instead of waiting for a connect action. If that flow
        fails there is nothing left to wait for: stop and return False.
        """
        await self.start()
        if connect and not self.auth.is_authenticated:
            if not await self.connect():
                await self.auth.wait_idle()
                await self.stop()
                return False
        try:
            await self.quit_event.wait()
        finally:
            await self.stop()
        return True

    async def connect(self) -> bool:
        return await self.auth.connect()

    async def refresh(self) -> bool:
        return await self.feed.refresh()

    async def handle_key(self, event: KeyEvent) -> bool:
        return await self.keys.dispatch(event)

    async def open_url(self, url: str) -> None:
        try:
            await self.host.open_url(url)
        except Exception as e:
            LOG.warning("open_url failed (%s), using default browser", e)
            webbrowser.open(url)

    async def open_entry(self, entry: Entry) -> None:
        await self.open_url(entry.url)

    async def open_github(self) -> None:
        try:
            await self.host.open_github()
        except Exception as e:
            LOG.warning("open_github failed (%s), using default browser", e)
            webbrowser.open(self.config.github.pulls_url)

    async def quit(self) -> None:
        try:
            await self.host.quit_app()
        except Exception as e:
            LOG.error("Failed to quit: %s", e)
            return
        self.quit_event.set()
