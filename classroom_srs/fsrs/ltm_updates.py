"""
Long-Term Memory Updates

Stability and difficulty update rules applied at each grading event.

Key principles:
- Successful recall of a hard-to-retrieve card grows stability the most
- Forgetting a well-retained card is penalized hardest
- Difficulty drifts with grades and reverts slowly towards the default
"""

from __future__ import annotations

import math
from typing import Optional

from classroom_srs.fsrs.constants import (
    DEFAULT_PARAMETERS,
    Grade,
    SchedulerParameters,
)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_stability(
    stability: float,
    params: SchedulerParameters = DEFAULT_PARAMETERS,
    fallback: Optional[float] = None
) -> float:
    """
    Clamp stability into [stability_min, stability_max].

    Non-finite values (overflow in the growth term) fall back to `fallback`,
    or to the upper bound for +inf and the lower bound otherwise.
    """
    if not math.isfinite(stability):
        if fallback is not None and math.isfinite(fallback):
            stability = fallback
        elif stability == math.inf:
            stability = params.stability_max
        else:
            stability = params.stability_min
    return clamp(stability, params.stability_min, params.stability_max)


def clamp_difficulty(
    difficulty: float,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    if not math.isfinite(difficulty):
        difficulty = initial_difficulty(Grade.GOOD, params)
    return clamp(difficulty, params.difficulty_min, params.difficulty_max)


def initial_stability(
    grade: Grade,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Seed stability for a first review: S0(G) = w[G - 1]
    """
    return clamp_stability(params.weights[int(grade) - 1], params)


def initial_difficulty(
    grade: Grade,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Seed difficulty for a first review: D0(G) = w4 - (G - 3) * w5

    AGAIN and HARD start harder than the default, EASY starts easier.
    """
    w = params.weights
    d0 = w[4] - (int(grade) - 3) * w[5]
    return clamp(d0, params.difficulty_min, params.difficulty_max)


def update_difficulty(
    difficulty: float,
    grade: Grade,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update difficulty based on the grade.

    Formula:
        D' = D - w6 * (G - 3)
        D'' = clip(w7 * D0(GOOD) + (1 - w7) * D', min=1, max=10)

    AGAIN raises difficulty by 2 * w6, HARD by w6, GOOD leaves it alone and
    EASY lowers it. The mean reversion term keeps long runs of one grade from
    pinning the card at a bound.
    """
    w = params.weights
    stepped = difficulty - w[6] * (int(grade) - 3)
    reverted = w[7] * initial_difficulty(Grade.GOOD, params) + (1.0 - w[7]) * stepped
    return clamp_difficulty(reverted, params)


def update_stability_on_success(
    stability: float,
    retrievability: float,
    difficulty: float,
    grade: Grade,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update stability after a successful recall (HARD/GOOD/EASY).

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * m(G))

    Where:
        - (e^(w10 * (1 - R)) - 1) rewards well-spaced success and vanishes
          as R approaches 1
        - (11 - D) shrinks gains for difficult cards
        - S^-w9 slows growth for already-stable cards
        - m(HARD) = w15, m(GOOD) = 1, m(EASY) = w16

    Args:
        stability: Stability before this review
        retrievability: Retrievability at review time
        difficulty: Difficulty after this review's update
        grade: HARD, GOOD or EASY

    Returns:
        New stability, never below the prior stability
    """
    if grade == Grade.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN")

    w = params.weights
    if grade == Grade.HARD:
        modifier = w[15]
    elif grade == Grade.EASY:
        modifier = w[16]
    else:
        modifier = 1.0

    growth = (
        math.exp(w[8])
        * (11.0 - difficulty)
        * math.pow(stability, -w[9])
        * math.expm1(w[10] * (1.0 - retrievability))
        * modifier
    )
    new_stability = stability * (1.0 + max(0.0, growth))

    return clamp_stability(new_stability, params, fallback=stability)


def update_stability_on_failure(
    stability: float,
    retrievability: float,
    difficulty: float,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update stability after a lapse (AGAIN).

    Formula:
        S' = min(S, w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R)))

    Higher difficulty and higher retrievability before the lapse both shrink
    the result. Capping at S means a lapse never increases stability.
    """
    w = params.weights
    forgotten = (
        w[11]
        * math.pow(difficulty, -w[12])
        * (math.pow(stability + 1.0, w[13]) - 1.0)
        * math.exp(w[14] * (1.0 - retrievability))
    )
    new_stability = min(stability, forgotten)

    return clamp_stability(new_stability, params, fallback=params.stability_min)


def apply_ltm_update(
    stability: float,
    difficulty: float,
    retrievability: float,
    grade: Grade,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> tuple[float, float]:
    """
    Apply the update rules to an already-reviewed card.

    Difficulty is updated first; both stability rules use the new value.

    Returns:
        (new_stability, new_difficulty)
    """
    new_difficulty = update_difficulty(difficulty, grade, params)

    if grade == Grade.AGAIN:
        new_stability = update_stability_on_failure(
            stability, retrievability, new_difficulty, params
        )
    else:
        new_stability = update_stability_on_success(
            stability, retrievability, new_difficulty, grade, params
        )

    return new_stability, new_difficulty
