"""Auth controller: owns AuthState and drives the device-code handshake.

unauthenticated -> (connect) authenticating -> (token) authenticated
authenticating -> (error / expiry) unauthenticated, with a short-lived message
authenticated -> (fetch says 401) unauthenticated
"""

import asyncio
import logging
from typing import Awaitable, Callable

from prism.clock import Clock, poll_until
from prism.events import AuthStateChanged, ConnectErrorCleared, ConnectFailed, DeviceCodeShown, EventBus
from prism.host.base import Host
from prism.models import AuthState, AuthStatus

LOG = logging.getLogger("prism.auth")

CONNECT_FAILED_MESSAGE = "Connection Failed. Try again."
LOADING_TEXT = "Loading..."


class AuthController:
    """Single owner of the process-wide AuthState."""

    def __init__(
        self,
        host: Host,
        bus: EventBus,
        clock: Clock | None = None,
        error_display_seconds: float = 3.0,
        on_authenticated: Callable[[], Awaitable[object]] | None = None,
    ) -> None:
        self._host = host
        self._bus = bus
        self._clock = clock or Clock()
        self._error_display_seconds = error_display_seconds
        self.on_authenticated = on_authenticated
        self._state = AuthState.unauthenticated()
        self._clear_task: asyncio.Task | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def _set_state(self, state: AuthState) -> None:
        if state == self._state:
            return
        LOG.debug("Auth state: %s -> %s", self._state.status.value, state.status.value)
        self._state = state
        self._bus.publish(AuthStateChanged(state))

    async def _enter_authenticated(self) -> None:
        self._set_state(AuthState.authenticated())
        if self.on_authenticated is not None:
            await self.on_authenticated()

    async def check_initial_auth(self) -> bool:
        """Use a stored token if there is one. Never raises."""
        try:
            token = await self._host.get_github_token()
        except Exception as e:
            LOG.info("Not authenticated, showing connection screen (%s)", e)
            token = ""
        if not token:
            self._set_state(AuthState.unauthenticated())
            return False
        LOG.info("Found stored GitHub token")
        await self._enter_authenticated()
        return True

    async def connect(self) -> bool:
        """Run the device flow. No-op unless currently unauthenticated."""
        if self._state.status is not AuthStatus.UNAUTHENTICATED:
            LOG.debug("connect() ignored while %s", self._state.status.value)
            return False

        self._set_state(AuthState.requesting_code())
        self._bus.publish(DeviceCodeShown(LOADING_TEXT))
        try:
            code = await self._host.request_device_code()
            issued_at = self._clock.now()
            self._set_state(AuthState.awaiting_user(code, issued_at))
            self._bus.publish(DeviceCodeShown(code.user_code, code.verification_uri))

            async def attempt() -> str:
                return await self._host.poll_for_token(code.device_code, code.interval, code.expires_in)

            await poll_until(
                attempt,
                interval=code.interval,
                deadline=issued_at + code.expires_in,
                clock=self._clock,
            )
        except Exception as e:
            LOG.error("Authentication failed: %s", e)
            self._fail_connect()
            return False

        LOG.info("GitHub authorization complete")
        await self._enter_authenticated()
        return True

    def _fail_connect(self) -> None:
        self._set_state(AuthState.unauthenticated())
        self._bus.publish(ConnectFailed(CONNECT_FAILED_MESSAGE))
        # a newer failure restarts the display window
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = asyncio.get_running_loop().create_task(self._clear_error_later())

    async def _clear_error_later(self) -> None:
        await self._clock.sleep(self._error_display_seconds)
        self._bus.publish(ConnectErrorCleared())

    async def wait_idle(self) -> None:
        """Wait until the error message (if any) has been cleared."""
        while self._clear_task is not None and not self._clear_task.done():
            task = self._clear_task
            try:
                await task
            except asyncio.CancelledError:
                # replaced by a newer timer; wait for that one instead
                if not task.cancelled():
                    raise

    async def sign_out(self, forget_token: bool = False) -> None:
        """Revert to unauthenticated, e.g. after the API rejected the token."""
        if forget_token:
            try:
                await self._host.clear_github_token()
            except Exception as e:
                LOG.warning("Failed to clear stored token: %s", e)
        self._set_state(AuthState.unauthenticated())
