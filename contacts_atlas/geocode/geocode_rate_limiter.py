"""
Minimum-interval throttle for the external geocoding service.

The public Nominatim instance allows at most one request per second; the
throttle keeps consecutive requests at least ``min_interval`` apart across
every caller sharing the instance.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from ..config.logger_module import log_debug


class MinIntervalThrottle:
    """
    Spaces out calls so that no two start less than ``min_interval`` apart.

    Each call reserves the next free slot before suspending, so concurrent
    callers queue up one interval after another instead of all waking at
    once.
    """

    def __init__(self,
                 min_interval: float = 1.1,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        Initialize the throttle.

        Args:
            min_interval: Minimum seconds between two external requests
            clock: Monotonic time source
            sleep: Coroutine used to wait
        """
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_slot: Optional[float] = None

    def get_wait_time(self) -> float:
        """Seconds a call made now would wait (without reserving a slot)."""
        if self._last_slot is None:
            return 0.0
        return max(0.0, self._last_slot + self.min_interval - self._clock())

    async def wait(self) -> float:
        """
        Wait for the next free slot.

        Returns:
            Seconds actually waited
        """
        now = self._clock()
        if self._last_slot is None:
            slot = now
        else:
            slot = max(now, self._last_slot + self.min_interval)
        self._last_slot = slot

        delay = slot - now
        if delay > 0:
            log_debug(f"Geocoder throttled, waiting {delay:.2f}s")
            await self._sleep(delay)
        return delay
