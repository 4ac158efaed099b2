from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from classroom_srs.analytics import SrsStats, compute_stats
from classroom_srs.fsrs import Grade, State, schedule


T = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def _state(state, stability, reviewed_days_ago, due_in_days):
    base = schedule(None, Grade.GOOD, T - timedelta(days=reviewed_days_ago))
    return replace(
        base,
        state=state,
        stability=stability,
        due=T + timedelta(days=due_in_days),
    )


@pytest.fixture
def states():
    return {
        "quiz1-0": _state(State.LEARNING, 0.4, 1, -0.5),
        "quiz1-1": _state(State.REVIEW, 10.0, 1, 9),
        "quiz1-2": _state(State.RELEARNING, 1.9, 0.5, -0.1),
        "quiz1-3": _state(State.REVIEW, 2.0, 30, -28),
    }


def test_counts(states):
    stats = compute_stats(states, T)

    assert stats == SrsStats(
        due_today=3,
        learning_count=1,
        review_count=2,
        relearning_count=1,
        learned_count=2,
        total=4,
    )


def test_learned_count_follows_target_retention(states):
    assert compute_stats(states, T, target_retention=0.99).learned_count == 0
    assert compute_stats(states, T, target_retention=0.3).learned_count == 4


def test_empty():
    stats = compute_stats({}, T)
    assert stats.to_dict() == {
        "due_today": 0,
        "learning_count": 0,
        "review_count": 0,
        "relearning_count": 0,
        "learned_count": 0,
        "total": 0,
    }


def test_due_today_moves_with_now(states):
    assert compute_stats(states, T + timedelta(days=9)).due_today == 4
    assert compute_stats(states, T - timedelta(days=30)).due_today == 0


def test_reviews_in_the_future_count_as_fully_retained(states):
    stats = compute_stats(states, T - timedelta(days=40))
    assert stats.learned_count == 4
