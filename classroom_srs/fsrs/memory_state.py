"""
Memory State - FSRS Card State and Retrievability

Defines the per-(learner, item) memory record and the forgetting-curve math.

Key concepts:
- Stability (S): Days until retrievability decays to 90%
- Difficulty (D): How hard the card is to retain (1-10 scale)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from classroom_srs.fsrs.constants import (
    DEFAULT_PARAMETERS,
    Grade,
    SchedulerParameters,
    State,
)


@dataclass(frozen=True)
class MemoryState:
    """
    Memory state for a single (learner, item) pair.

    A record with state NEW has never been reviewed: stability and difficulty
    are zero and last_review is None.
    """
    state: State
    stability: float  # S, in days
    difficulty: float  # D, range 1-10
    elapsed_days: float  # Days between the previous review and the latest one
    scheduled_days: float  # Interval chosen at the latest review
    reps: int  # Total grading events
    lapses: int  # Number of AGAIN grades
    due: datetime
    last_review: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        """Never reviewed: state NEW, or no review timestamp."""
        return self.state == State.NEW or self.last_review is None


@dataclass(frozen=True)
class ReviewLog:
    """
    One grading event, captured before and after the update.
    """
    learner_id: str
    item_id: str
    grade: Grade
    state_before: State
    state_after: State
    stability_before: Optional[float]
    stability_after: float
    difficulty_before: Optional[float]
    difficulty_after: float
    retrievability_before: Optional[float]  # None for the first review
    elapsed_days: float
    scheduled_days: float
    due: datetime
    reviewed_at: datetime


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    delta = ensure_utc(end) - ensure_utc(start)
    return delta.total_seconds() / 86400.0


def calculate_retrievability(
    stability: float,
    elapsed_days: float,
    decay_factor: float = DEFAULT_PARAMETERS.decay_factor
) -> float:
    """
    Calculate retrievability using the power forgetting curve.

    Formula: R = (1 + t / (F * S)) ^ -1

    Where:
    - t = days since last review
    - S = stability (in days)
    - F = decay factor (9 by default, so R = 0.9 when t = S)

    Args:
        stability: Current stability in days (must be positive)
        elapsed_days: Days since the last review
        decay_factor: Curve shape constant

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0

    return 1.0 / (1.0 + elapsed_days / (decay_factor * stability))


def next_interval(
    stability: float,
    target_retention: float,
    decay_factor: float = DEFAULT_PARAMETERS.decay_factor
) -> float:
    """
    Interval (days) after which retrievability falls to target_retention.

    Inverts the forgetting curve: t = F * S * (1 / target - 1)
    """
    return decay_factor * stability * (1.0 / target_retention - 1.0)


def new_memory_state(now: datetime) -> MemoryState:
    """Empty record for an item that has never been reviewed."""
    return MemoryState(
        state=State.NEW,
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0.0,
        scheduled_days=0.0,
        reps=0,
        lapses=0,
        due=ensure_utc(now),
        last_review=None,
    )


def current_retrievability(
    memory: Optional[MemoryState],
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Retrievability of a stored record at `now`.

    Never-reviewed items have nothing to recall, so they report 0.
    """
    if memory is None or memory.is_new or memory.stability <= 0:
        return 0.0
    elapsed = max(0.0, days_between(memory.last_review, now))
    r = calculate_retrievability(memory.stability, elapsed, params.decay_factor)
    return r if math.isfinite(r) else 0.0
