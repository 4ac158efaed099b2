"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state updates (no database calls).

Main workflow:
1. Load the prior state (caller's responsibility; None for a new item)
2. Bootstrap or update stability and difficulty
3. Pick the next interval from the target retention
4. Return the new state + review log entry

The current time is always passed in; nothing here reads the clock.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from classroom_srs.fsrs import ltm_updates
from classroom_srs.fsrs.constants import (
    DEFAULT_PARAMETERS,
    Grade,
    SchedulerParameters,
    State,
    validate_retention,
)
from classroom_srs.fsrs.memory_state import (
    MemoryState,
    ReviewLog,
    calculate_retrievability,
    days_between,
    ensure_utc,
    next_interval,
)

logger = logging.getLogger(__name__)

LATEST_DUE = datetime.max.replace(tzinfo=timezone.utc)


def process_review(
    prior: Optional[MemoryState],
    grade: Grade,
    now: datetime,
    target_retention: Optional[float] = None,
    params: SchedulerParameters = DEFAULT_PARAMETERS,
    learner_id: str = "",
    item_id: str = ""
) -> tuple[MemoryState, ReviewLog]:
    """
    Process a review and return the updated state + review log entry.

    This is the core FSRS algorithm. No database calls.

    Args:
        prior: Stored state, or None if the item was never reviewed
        grade: Validated grade (see Grade.parse)
        now: Review instant
        target_retention: Retention the next interval aims for
            (defaults to params.request_retention)
        params: Weights and bounds
        learner_id, item_id: Copied into the review log

    Returns:
        Tuple of (new_state, review_log)
    """
    retention = validate_retention(
        params.request_retention if target_retention is None else target_retention
    )
    now = ensure_utc(now)

    if prior is None or prior.is_new:
        new_state, retrievability = _first_review(grade, now, retention, params), None
        state_before = State.NEW
        stability_before = difficulty_before = None
    else:
        new_state, retrievability = _next_review(prior, grade, now, retention, params)
        state_before = prior.state
        stability_before = prior.stability
        difficulty_before = prior.difficulty

    log = ReviewLog(
        learner_id=learner_id,
        item_id=item_id,
        grade=grade,
        state_before=state_before,
        state_after=new_state.state,
        stability_before=stability_before,
        stability_after=new_state.stability,
        difficulty_before=difficulty_before,
        difficulty_after=new_state.difficulty,
        retrievability_before=retrievability,
        elapsed_days=new_state.elapsed_days,
        scheduled_days=new_state.scheduled_days,
        due=new_state.due,
        reviewed_at=now,
    )
    return new_state, log


def schedule(
    prior: Optional[MemoryState],
    grade: Grade,
    now: datetime,
    target_retention: Optional[float] = None,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> MemoryState:
    """
    Compute the memory state after grading an item at `now`.

    Total over its domain: the result always has finite positive stability,
    bounded difficulty and a due date no earlier than `now`.
    """
    new_state, _ = process_review(prior, grade, now, target_retention, params)
    return new_state


def preview(
    prior: Optional[MemoryState],
    now: datetime,
    target_retention: Optional[float] = None,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> dict[Grade, MemoryState]:
    """Outcome of each possible grade, without committing to any."""
    return {
        grade: schedule(prior, grade, now, target_retention, params)
        for grade in Grade
    }


def _first_review(
    grade: Grade,
    now: datetime,
    target_retention: float,
    params: SchedulerParameters
) -> MemoryState:
    """
    Bootstrap a never-reviewed item from the grade-specific seeds.
    """
    stability = ltm_updates.initial_stability(grade, params)
    difficulty = ltm_updates.initial_difficulty(grade, params)

    if grade in (Grade.AGAIN, Grade.HARD):
        state = State.LEARNING
    else:
        state = State.REVIEW

    scheduled = _scheduled_days(stability, grade, target_retention, params)
    due, scheduled = _due_date(now, scheduled)

    return MemoryState(
        state=state,
        stability=stability,
        difficulty=difficulty,
        elapsed_days=0.0,
        scheduled_days=scheduled,
        reps=1,
        lapses=1 if grade == Grade.AGAIN else 0,
        due=due,
        last_review=now,
    )


def _next_review(
    prior: MemoryState,
    grade: Grade,
    now: datetime,
    target_retention: float,
    params: SchedulerParameters
) -> tuple[MemoryState, float]:
    """
    Update an already-reviewed item. Returns (new_state, retrievability).
    """
    elapsed = days_between(prior.last_review, now)
    if elapsed < 0:
        logger.debug(
            "Review at %s precedes last review at %s; treating elapsed time as 0",
            now.isoformat(), ensure_utc(prior.last_review).isoformat()
        )
        elapsed = 0.0

    stability = ltm_updates.clamp_stability(prior.stability, params)
    difficulty = ltm_updates.clamp_difficulty(prior.difficulty, params)
    retrievability = calculate_retrievability(stability, elapsed, params.decay_factor)

    new_stability, new_difficulty = ltm_updates.apply_ltm_update(
        stability=stability,
        difficulty=difficulty,
        retrievability=retrievability,
        grade=grade,
        params=params
    )

    lapses = prior.lapses
    if grade == Grade.AGAIN:
        lapses += 1
        state = State.LEARNING if prior.state == State.LEARNING else State.RELEARNING
    else:
        state = State.REVIEW

    scheduled = _scheduled_days(new_stability, grade, target_retention, params)
    due, scheduled = _due_date(now, scheduled)

    new_state = MemoryState(
        state=state,
        stability=new_stability,
        difficulty=new_difficulty,
        elapsed_days=elapsed,
        scheduled_days=scheduled,
        reps=prior.reps + 1,
        lapses=lapses,
        due=due,
        last_review=now,
    )
    return new_state, retrievability


def _scheduled_days(
    stability: float,
    grade: Grade,
    target_retention: float,
    params: SchedulerParameters
) -> float:
    """
    Next interval in days, clamped to [minimum_interval, maximum_interval].

    AGAIN always gets the short relearning step.
    """
    if grade == Grade.AGAIN:
        interval = params.relearning_interval_days
    else:
        interval = next_interval(stability, target_retention, params.decay_factor)

    if not math.isfinite(interval):
        interval = params.maximum_interval
    return ltm_updates.clamp(
        interval, params.minimum_interval_days, params.maximum_interval
    )


def _due_date(now: datetime, scheduled: float) -> tuple[datetime, float]:
    """
    Due date `scheduled` days after `now`, with the interval shortened when
    the date would fall past the last representable instant.
    """
    try:
        return now + timedelta(days=scheduled), scheduled
    except OverflowError:
        logger.warning(
            "Interval of %.1f days from %s overflows; due at %s instead",
            scheduled, now.isoformat(), LATEST_DUE.isoformat()
        )
        return LATEST_DUE, days_between(now, LATEST_DUE)
