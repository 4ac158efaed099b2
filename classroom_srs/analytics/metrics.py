"""
Metric computations over memory-state dataframes.
"""

from __future__ import annotations

from datetime import datetime

import pandas as pd

from classroom_srs.fsrs.constants import State


def compute_due_count(states_df: pd.DataFrame, now: datetime) -> int:
    """
    Records whose due date is at or before `now`.
    """
    if states_df.empty:
        return 0
    return int((states_df["due"] <= pd.Timestamp(now)).sum())


def compute_state_count(states_df: pd.DataFrame, state: State) -> int:
    if states_df.empty:
        return 0
    return int((states_df["state"] == int(state)).sum())


def compute_retrievability(
    states_df: pd.DataFrame,
    now: datetime,
    decay_factor: float
) -> pd.Series:
    """
    Current retrievability per record, R = (1 + t / (F * S)) ^ -1.

    Records without a review (or with non-positive stability) report 0.
    """
    if states_df.empty:
        return pd.Series(dtype="float64")

    elapsed = (pd.Timestamp(now) - states_df["last_review"]).dt.total_seconds() / 86400.0
    elapsed = elapsed.clip(lower=0.0)
    stability = states_df["stability"].astype("float64")
    reviewed = states_df["last_review"].notna() & (stability > 0)

    r = 1.0 / (1.0 + elapsed / (decay_factor * stability.where(reviewed)))
    return r.where(reviewed, 0.0).astype("float64")


def compute_learned_count(
    states_df: pd.DataFrame,
    now: datetime,
    r_target: float,
    decay_factor: float
) -> int:
    """
    Learned count: records whose current retrievability is >= r_target.
    """
    if states_df.empty:
        return 0
    r = compute_retrievability(states_df, now, decay_factor)
    return int((r >= r_target).sum())
