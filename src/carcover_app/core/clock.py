"""Time sources and the coarse calendar arithmetic used by policies."""

from __future__ import annotations

import time
from typing import Protocol

SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY
PREMIUM_WINDOW_SECONDS = 30 * SECONDS_PER_DAY
EPOCH_YEAR = 1970


class Clock(Protocol):
    def now(self) -> int:
        """Return the current unix timestamp in seconds."""


class SystemClock:
    """Wall-clock time that never moves backwards within one process."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class ManualClock:
    """Clock advanced explicitly, for tests and replays."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int = 0, days: int = 0) -> int:
        """Move time forward and return the new timestamp."""
        delta = seconds + days * SECONDS_PER_DAY
        if delta < 0:
            raise ValueError("시간은 되돌릴 수 없습니다.")
        self._now += delta
        return self._now


def year_of(timestamp: int) -> int:
    """Approximate calendar year, ignoring leap years."""
    return EPOCH_YEAR + timestamp // SECONDS_PER_YEAR
