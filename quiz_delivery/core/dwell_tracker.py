"""Per-question time accounting."""

from __future__ import annotations

from datetime import datetime, timedelta
import math


class DwellTracker:
    """Accumulates how long each display position was on screen."""

    def __init__(self, position_count: int) -> None:
        self._totals: list[timedelta] = [timedelta(0)] * position_count
        self._last_change: datetime | None = None

    @property
    def is_started(self) -> bool:
        return self._last_change is not None

    def start(self, now: datetime) -> None:
        self._last_change = now

    def credit(self, position: int, now: datetime) -> None:
        """Add the time since the last position change to ``position``."""
        if self._last_change is None:
            raise RuntimeError("Dwell tracking has not been started.")
        if not 0 <= position < len(self._totals):
            raise IndexError(f"Position {position} out of range")
        elapsed = now - self._last_change
        if elapsed > timedelta(0):
            self._totals[position] += elapsed
        self._last_change = now

    def seconds(self) -> list[int]:
        return [math.floor(total.total_seconds()) for total in self._totals]

    def total_seconds(self) -> float:
        return sum((total for total in self._totals), timedelta(0)).total_seconds()
