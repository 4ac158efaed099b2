"""
Types for review statistics.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class SrsStats:
    """
    Coarse counts over one learner's stored memory states.
    """
    due_today: int
    learning_count: int
    review_count: int
    relearning_count: int
    learned_count: int
    total: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)
