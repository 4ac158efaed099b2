"""
Data-loading helpers for statistics.
"""

from __future__ import annotations

from typing import Mapping

import pandas as pd

from classroom_srs.fsrs.memory_state import MemoryState


STATE_COLUMNS = ["item_id", "state", "due", "stability", "last_review"]


def states_to_df(states: Mapping[str, MemoryState]) -> pd.DataFrame:
    """
    One row per stored record, with UTC timestamps.
    """
    if not states:
        return pd.DataFrame(columns=STATE_COLUMNS)

    df = pd.DataFrame([
        {
            "item_id": item_id,
            "state": int(state.state),
            "due": state.due,
            "stability": state.stability,
            "last_review": state.last_review,
        }
        for item_id, state in states.items()
    ])
    df["due"] = pd.to_datetime(df["due"], utc=True)
    df["last_review"] = pd.to_datetime(df["last_review"], utc=True)
    return df
