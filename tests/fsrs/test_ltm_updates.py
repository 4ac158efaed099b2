import pytest

from classroom_srs.fsrs import Grade
from classroom_srs.fsrs.ltm_updates import (
    apply_ltm_update,
    clamp_stability,
    initial_difficulty,
    update_difficulty,
    update_stability_on_failure,
    update_stability_on_success,
)
from classroom_srs.fsrs.constants import S_MAX, S_MIN


def test_failure_shrinks_more_for_harder_cards():
    easy_card = update_stability_on_failure(20.0, 0.9, 3.0)
    hard_card = update_stability_on_failure(20.0, 0.9, 9.0)

    assert hard_card < easy_card < 20.0


def test_failure_shrinks_more_when_recall_was_expected():
    expected = update_stability_on_failure(20.0, 0.95, 5.0)
    unexpected = update_stability_on_failure(20.0, 0.5, 5.0)

    assert expected < unexpected < 20.0


def test_failure_never_raises_stability():
    # Tiny prior stability: the post-lapse formula alone would exceed it
    assert update_stability_on_failure(0.05, 0.2, 2.0) <= 0.05


def test_success_grows_more_for_easier_cards():
    easy_card = update_stability_on_success(10.0, 0.85, 2.0, Grade.GOOD)
    hard_card = update_stability_on_success(10.0, 0.85, 9.0, Grade.GOOD)

    assert easy_card > hard_card > 10.0


def test_success_scaled_by_grade():
    hard = update_stability_on_success(10.0, 0.85, 5.0, Grade.HARD)
    good = update_stability_on_success(10.0, 0.85, 5.0, Grade.GOOD)
    easy = update_stability_on_success(10.0, 0.85, 5.0, Grade.EASY)

    assert 10.0 < hard < good < easy


def test_success_rejects_again():
    with pytest.raises(ValueError):
        update_stability_on_success(10.0, 0.85, 5.0, Grade.AGAIN)


def test_difficulty_direction_and_bounds():
    assert update_difficulty(5.0, Grade.AGAIN) > 5.0
    assert update_difficulty(5.0, Grade.EASY) < 5.0
    assert update_difficulty(4.93, Grade.GOOD) == pytest.approx(4.93)
    assert update_difficulty(10.0, Grade.AGAIN) == 10.0
    assert update_difficulty(1.0, Grade.EASY) == 1.0


def test_difficulty_reverts_towards_default():
    # GOOD leaves only the mean reversion term
    assert 9.0 > update_difficulty(9.0, Grade.GOOD) > initial_difficulty(Grade.GOOD)


def test_apply_ltm_update_uses_updated_difficulty():
    stability, difficulty = apply_ltm_update(5.0, 4.93, 0.9, Grade.GOOD)

    assert difficulty == pytest.approx(update_difficulty(4.93, Grade.GOOD))
    assert stability == pytest.approx(
        update_stability_on_success(5.0, 0.9, difficulty, Grade.GOOD)
    )


def test_clamp_stability_absorbs_non_finite_values():
    assert clamp_stability(float("nan")) == S_MIN
    assert clamp_stability(float("inf")) == S_MAX
    assert clamp_stability(float("nan"), fallback=3.0) == 3.0
    assert clamp_stability(0.0) == S_MIN
