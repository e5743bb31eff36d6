from datetime import datetime, timedelta, timezone

import pytest

from quiz_delivery.core.dwell_tracker import DwellTracker

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds):
    return T0 + timedelta(seconds=seconds)


def test_credits_time_to_the_position_being_left():
    tracker = DwellTracker(3)
    tracker.start(at(0))
    tracker.credit(0, at(12))
    tracker.credit(1, at(20))
    tracker.credit(0, at(25))
    assert tracker.seconds() == [17, 8, 0]
    assert tracker.total_seconds() == 25


def test_fractions_accumulate_before_flooring():
    tracker = DwellTracker(1)
    tracker.start(at(0))
    for step in range(1, 5):
        tracker.credit(0, at(step * 0.5))
    assert tracker.seconds() == [2]


def test_clock_going_backwards_credits_nothing():
    tracker = DwellTracker(2)
    tracker.start(at(10))
    tracker.credit(0, at(5))
    assert tracker.seconds() == [0, 0]
    tracker.credit(0, at(8))
    assert tracker.seconds() == [3, 0]


def test_requires_start_and_valid_position():
    tracker = DwellTracker(2)
    with pytest.raises(RuntimeError):
        tracker.credit(0, at(1))
    tracker.start(at(0))
    with pytest.raises(IndexError):
        tracker.credit(2, at(1))
