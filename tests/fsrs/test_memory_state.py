from datetime import datetime, timedelta, timezone

import pytest

from classroom_srs.fsrs import (
    Grade,
    State,
    calculate_retrievability,
    current_retrievability,
    new_memory_state,
    next_interval,
    schedule,
)
from classroom_srs.fsrs.memory_state import days_between, ensure_utc


T = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def test_retrievability_is_ninety_percent_after_one_stability():
    assert calculate_retrievability(5.0, 5.0) == pytest.approx(0.9)
    assert calculate_retrievability(12.0, 12.0) == pytest.approx(0.9)


def test_retrievability_starts_at_one_and_decays():
    assert calculate_retrievability(5.0, 0.0) == 1.0
    assert calculate_retrievability(5.0, -2.0) == 1.0
    assert calculate_retrievability(5.0, 1.0) > calculate_retrievability(5.0, 10.0)


def test_power_curve_values():
    # R = 1 / (1 + t / (9 * S))
    assert calculate_retrievability(2.0, 18.0) == pytest.approx(0.5)
    assert calculate_retrievability(1.0, 27.0) == pytest.approx(0.25)


def test_next_interval_inverts_the_curve():
    assert next_interval(5.0, 0.9) == pytest.approx(5.0)
    interval = next_interval(8.0, 0.75)
    assert calculate_retrievability(8.0, interval) == pytest.approx(0.75)


def test_new_memory_state_is_due_immediately():
    state = new_memory_state(T)

    assert state.state == State.NEW
    assert state.is_new
    assert state.due == T
    assert state.reps == 0
    assert state.lapses == 0


def test_current_retrievability():
    reviewed = schedule(None, Grade.GOOD, T)

    assert current_retrievability(None, T) == 0.0
    assert current_retrievability(new_memory_state(T), T) == 0.0
    assert current_retrievability(reviewed, T) == 1.0
    assert current_retrievability(reviewed, T + timedelta(days=reviewed.stability)) == pytest.approx(0.9)
    assert current_retrievability(reviewed, T - timedelta(days=1)) == 1.0


def test_days_between_handles_mixed_timezones():
    naive = datetime(2026, 3, 2, 9, 30)
    plus_two = datetime(2026, 3, 3, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    assert days_between(naive, plus_two) == pytest.approx(1.0)
    assert days_between(plus_two, naive) == pytest.approx(-1.0)


def test_ensure_utc():
    naive = datetime(2026, 3, 2, 9, 30)
    assert ensure_utc(naive).tzinfo == timezone.utc
    shifted = datetime(2026, 3, 2, 11, 30, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(shifted) == T
    assert ensure_utc(shifted).utcoffset() == timedelta(0)
