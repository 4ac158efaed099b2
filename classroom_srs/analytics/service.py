"""
Service layer to assemble review statistics for a learner.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional

from classroom_srs.analytics.metrics import (
    compute_due_count,
    compute_learned_count,
    compute_state_count,
)
from classroom_srs.analytics.queries import states_to_df
from classroom_srs.analytics.types import SrsStats
from classroom_srs.fsrs.constants import DEFAULT_PARAMETERS, SchedulerParameters, State
from classroom_srs.fsrs.memory_state import MemoryState, ensure_utc


def compute_stats(
    states: Mapping[str, MemoryState],
    now: datetime,
    target_retention: Optional[float] = None,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> SrsStats:
    """
    Partition a learner's records into coarse counts.

    learning_count covers LEARNING only; RELEARNING is reported separately.
    """
    now = ensure_utc(now)
    r_target = params.request_retention if target_retention is None else target_retention
    states_df = states_to_df(states)

    return SrsStats(
        due_today=compute_due_count(states_df, now),
        learning_count=compute_state_count(states_df, State.LEARNING),
        review_count=compute_state_count(states_df, State.REVIEW),
        relearning_count=compute_state_count(states_df, State.RELEARNING),
        learned_count=compute_learned_count(states_df, now, r_target, params.decay_factor),
        total=len(states_df),
    )
