"""
Due-set selection

Decides which items of a deck should be shown to a learner right now.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from classroom_srs.fsrs.memory_state import ensure_utc
from classroom_srs.fsrs.store import MemoryStateStore


def due_items(
    store: MemoryStateStore,
    learner_id: str,
    deck_item_ids: Sequence[str],
    now: datetime
) -> list[str]:
    """
    Items to review at `now`, in presentation order.

    An item is due if the learner has no record for it (never studied) or its
    due date has passed. Studied items come first, earliest due date first
    (ties keep deck order); never-studied items follow in deck order. An item
    due earlier always precedes one due later, whatever their deck positions,
    so items 2 and 5 due at T-1 and T-2 come out as 5, 2.

    Args:
        store: Memory state store
        learner_id: Learner identifier
        deck_item_ids: Item ids in deck order
        now: Query instant

    Returns:
        List of due item ids
    """
    now = ensure_utc(now)
    states = store.get_many(learner_id, deck_item_ids)

    studied = []
    unseen = []
    for position, item_id in enumerate(deck_item_ids):
        state = states.get(item_id)
        if state is None or state.is_new:
            unseen.append(item_id)
        elif ensure_utc(state.due) <= now:
            studied.append((ensure_utc(state.due), position, item_id))

    studied.sort()
    return [item_id for _, _, item_id in studied] + unseen
