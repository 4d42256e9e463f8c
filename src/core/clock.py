"""
Wall-clock helpers.

All cluster timestamps are integer milliseconds since the epoch. Components
take a ``Clock`` callable so tests can substitute a controllable clock.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
