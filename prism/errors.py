"""Exceptions raised by host commands and the device flow."""


class PrismError(Exception):
    """Base for all Prism errors."""

    pass


class HostCommandError(PrismError):
    """Raised when a host command (token, device flow, fetch, open, quit) fails.

    The message is kept as the host reported it; the feed controller looks
    for "Not authenticated" / "401" in it.
    """

    pass


class DeviceFlowError(HostCommandError):
    """OAuth device flow returned an error other than pending / slow_down."""

    pass


class SlowDown(HostCommandError):
    """Token endpoint asked the client to poll less often."""

    pass


class DeviceFlowExpired(PrismError):
    """Device code expired before the user authorized it."""

    pass


AUTH_ERROR_MARKERS = ("Not authenticated", "401")


def is_auth_error(error: BaseException | str) -> bool:
    """True when a fetch failure means the token is missing or rejected."""
    message = str(error)
    return any(marker in message for marker in AUTH_ERROR_MARKERS)
