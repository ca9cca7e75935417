"""Clock and bounded retry used by the device-code poll."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from prism.errors import DeviceFlowExpired, SlowDown

LOG = logging.getLogger("prism.clock")

T = TypeVar("T")

# GitHub: on slow_down, add 5 seconds to the polling interval
SLOW_DOWN_STEP = 5


class Clock:
    """Monotonic time and sleeping on the running event loop."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


async def poll_until(
    attempt: Callable[[], Awaitable[T]],
    interval: float,
    deadline: float,
    clock: Clock,
) -> T:
    """Call attempt every interval seconds until it returns a truthy value.

    Waits one interval before the first attempt. Gives up with
    DeviceFlowExpired once the next attempt would start after deadline
    (a clock.now() value). SlowDown from attempt lengthens the interval;
    any other exception propagates.
    """
    while True:
        if clock.now() + interval > deadline:
            raise DeviceFlowExpired("Device code expired before authorization")
        await clock.sleep(interval)
        try:
            result = await attempt()
        except SlowDown:
            interval += SLOW_DOWN_STEP
            LOG.debug("Token endpoint asked to slow down, interval now %ss", interval)
            continue
        if result:
            return result
