"""Drift-free countdown for timed attempts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
import logging
import math

from quiz_delivery.constants.quiz_constants import TIME_WARNING_FRACTION

logger = logging.getLogger(__name__)


class TimerEvent(str, Enum):
    WARNING = "warning"
    EXPIRED = "expired"


class CountdownTimer:
    """Countdown recomputed from an absolute epoch on every tick.

    The host calls :meth:`tick` on a schedule (1 Hz in the Qt window), but the
    remaining time never depends on how many ticks actually ran: delayed or
    skipped callbacks, e.g. from a suspended laptop, cannot make the clock run
    slow.
    """

    def __init__(self, duration_seconds: int, warning_fraction: float = TIME_WARNING_FRACTION) -> None:
        if duration_seconds <= 0:
            raise ValueError("Countdown duration must be a positive number of seconds.")
        if not 0 <= warning_fraction < 1:
            raise ValueError("Warning fraction must be within [0, 1).")
        self.duration_seconds = duration_seconds
        self.warning_threshold = warning_fraction * duration_seconds
        self._epoch: datetime | None = None
        self._armed = False
        self._warned = False
        self._expired = False

    @property
    def epoch(self) -> datetime | None:
        return self._epoch

    @property
    def is_armed(self) -> bool:
        return self._armed

    @property
    def has_warned(self) -> bool:
        return self._warned

    @property
    def has_expired(self) -> bool:
        return self._expired

    def arm(self, epoch: datetime) -> None:
        if self._epoch is not None:
            raise RuntimeError("Countdown has already been armed.")
        self._epoch = epoch
        self._armed = True
        logger.debug("Countdown armed for %ss at %s", self.duration_seconds, epoch.isoformat())

    def disarm(self) -> None:
        self._armed = False

    def elapsed_seconds(self, now: datetime) -> int:
        if self._epoch is None:
            return 0
        return math.floor((now - self._epoch).total_seconds())

    def remaining_seconds(self, now: datetime) -> int:
        """Whole seconds left, never negative. Full duration before arming."""
        if self._epoch is None:
            return self.duration_seconds
        return max(0, self.duration_seconds - self.elapsed_seconds(now))

    def is_expired_at(self, now: datetime) -> bool:
        return self._expired or (self._epoch is not None and self.remaining_seconds(now) <= 0)

    def tick(self, now: datetime) -> list[TimerEvent]:
        if not self._armed:
            return []
        remaining = self.duration_seconds - self.elapsed_seconds(now)
        events: list[TimerEvent] = []
        if not self._warned and remaining <= self.warning_threshold:
            self._warned = True
            # Same-tick expiry still gets its warning, always ahead of EXPIRED.
            events.append(TimerEvent.WARNING)
        if not self._expired and remaining <= 0:
            self._expired = True
            self._armed = False
            events.append(TimerEvent.EXPIRED)
        return events
