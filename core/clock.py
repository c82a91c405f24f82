"""
Clock abstraction for EPC Explorer.

All age and activity computations read time through a clock object so
tests can advance time without sleeping.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Anything with a monotonic ``now()`` in seconds."""

    def now(self) -> float:
        ...


class MonotonicClock:
    """Process monotonic clock."""

    def now(self) -> float:
        return time.monotonic()


DEFAULT_CLOCK = MonotonicClock()
