"""Clock adapter — monotonic milliseconds from the system clock."""

from __future__ import annotations

import time


class SystemClock:
    """Implements the Clock port. Unaffected by wall-clock adjustments."""

    def now_millis(self) -> int:
        return time.monotonic_ns() // 1_000_000


def wall_clock_millis() -> int:
    """Current UNIX time in milliseconds (for comparing against document timestamps)."""
    return time.time_ns() // 1_000_000
