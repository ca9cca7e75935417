"""Abstract base for the host that runs Prism's side effects.

Token storage, OAuth HTTP calls, the PR query and the native open/quit
primitives live behind this interface; controllers only call it and
interpret results. Every command is a coroutine.
"""

from abc import ABC, abstractmethod

from prism.models import DeviceCode, PRFeed


class Host(ABC):
    """Commands the controllers invoke. Failures raise HostCommandError."""

    @abstractmethod
    async def get_github_token(self) -> str:
        """Return the stored token, or "" when there is none."""
        ...

    @abstractmethod
    async def request_device_code(self) -> DeviceCode:
        """Start the device flow and return the codes to show the user."""
        ...

    @abstractmethod
    async def poll_for_token(self, device_code: str, interval: int, expires_in: int) -> str:
        """Ask once for the token.

        Returns the token, or "" while the user has not authorized yet.
        Raises SlowDown when the endpoint wants a longer interval.
        """
        ...

    @abstractmethod
    async def fetch_pull_requests(self) -> PRFeed:
        """Fetch the user's open PRs, already split into categories."""
        ...

    @abstractmethod
    async def open_url(self, url: str) -> None: ...

    @abstractmethod
    async def open_github(self) -> None: ...

    @abstractmethod
    async def quit_app(self) -> None: ...

    async def clear_github_token(self) -> None:
        """Forget the stored token. Override if the host stores one."""
        return None
