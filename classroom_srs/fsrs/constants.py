"""
FSRS Constants and Parameters

Grades, lifecycle states and the default parameter set for the scheduler.
All tunable values live in SchedulerParameters so callers can inject their own.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import IntEnum
from typing import Union

from classroom_srs.errors import InvalidGrade


# ---- Grades ----

class Grade(IntEnum):
    """Learner's self-reported recall quality."""
    AGAIN = 1   # Forgotten
    HARD = 2    # Recalled with serious effort
    GOOD = 3    # Recalled normally
    EASY = 4    # Recalled effortlessly

    @classmethod
    def parse(cls, value: Union["Grade", int, str]) -> "Grade":
        """
        Normalize a grade coming from outside the engine.

        Accepts Grade members, ints 1-4 and the labels again/hard/good/easy
        (case-insensitive). Anything else raises InvalidGrade.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidGrade(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidGrade(value) from None
        if isinstance(value, str):
            member = cls.__members__.get(value.strip().upper())
            if member is not None:
                return member
        raise InvalidGrade(value)


# ---- Lifecycle ----

class State(IntEnum):
    """Lifecycle phase of a card, stored as its integer value."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Global Constants ----

DECAY_FACTOR = 9.0          # R(S, S) = 0.9 with the power forgetting curve
R_TARGET = 0.9              # Default target retention
S_MIN = 0.01                # Minimum stability (days)
S_MAX = 36500.0             # Maximum stability (days)
D_MIN = 1.0                 # Minimum difficulty
D_MAX = 10.0                # Maximum difficulty
MAXIMUM_INTERVAL = 36500.0  # Longest interval we ever schedule (days)
INTERVAL_CEILING = 1_000_000.0  # Largest configurable maximum_interval (days)

RELEARNING_INTERVAL = timedelta(minutes=10)
MINIMUM_INTERVAL = timedelta(minutes=10)


# ---- Default weights (FSRS v4) ----
# w0-w3   initial stability per grade
# w4-w5   initial difficulty and its per-grade slope
# w6-w7   difficulty step and mean reversion
# w8-w10  recall stability growth
# w11-w14 post-lapse stability
# w15-w16 hard penalty / easy bonus

DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.4, 0.6, 2.4, 5.8,
    4.93, 0.94,
    0.86, 0.01,
    1.49, 0.14, 0.94,
    2.18, 0.05, 0.34, 1.26,
    0.29, 2.61,
)


def _days(delta: timedelta) -> float:
    return delta.total_seconds() / 86400.0


@dataclass(frozen=True)
class SchedulerParameters:
    """
    Injectable configuration for the scheduler.

    Everything the update rules depend on is here, so a tuned parameter set
    can be swapped in without touching the algorithm.
    """
    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    decay_factor: float = DECAY_FACTOR
    request_retention: float = R_TARGET
    maximum_interval: float = MAXIMUM_INTERVAL
    relearning_interval: timedelta = field(default=RELEARNING_INTERVAL)
    minimum_interval: timedelta = field(default=MINIMUM_INTERVAL)
    stability_min: float = S_MIN
    stability_max: float = S_MAX
    difficulty_min: float = D_MIN
    difficulty_max: float = D_MAX

    def __post_init__(self):
        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(
                f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}"
            )
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        validate_retention(self.request_retention)
        if self.decay_factor <= 0:
            raise ValueError("decay_factor must be positive")
        if not 0 < self.stability_min < self.stability_max:
            raise ValueError("stability bounds must satisfy 0 < min < max")
        if not self.difficulty_min < self.difficulty_max:
            raise ValueError("difficulty bounds must satisfy min < max")
        if self.minimum_interval <= timedelta(0):
            raise ValueError("minimum_interval must be positive")
        if not math.isfinite(self.maximum_interval) or self.maximum_interval > INTERVAL_CEILING:
            raise ValueError(
                f"maximum_interval must be a finite number of days up to {INTERVAL_CEILING:g}"
            )
        if self.maximum_interval < _days(self.minimum_interval):
            raise ValueError("maximum_interval must not be below minimum_interval")

    @property
    def minimum_interval_days(self) -> float:
        return _days(self.minimum_interval)

    @property
    def relearning_interval_days(self) -> float:
        return _days(self.relearning_interval)

    def with_retention(self, request_retention: float) -> "SchedulerParameters":
        """Copy of these parameters with a different target retention."""
        return replace(self, request_retention=request_retention)


def validate_retention(target_retention: float) -> float:
    """Reject target retentions outside the open interval (0, 1)."""
    if not 0.0 < target_retention < 1.0:
        raise ValueError(
            f"target retention must be in (0, 1), got {target_retention!r}"
        )
    return float(target_retention)


DEFAULT_PARAMETERS = SchedulerParameters()
