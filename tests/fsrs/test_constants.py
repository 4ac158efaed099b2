from datetime import timedelta

import pytest

from classroom_srs.errors import InvalidGrade
from classroom_srs.fsrs import DEFAULT_PARAMETERS, Grade, SchedulerParameters, State


@pytest.mark.parametrize("value, expected", [
    ("again", Grade.AGAIN),
    ("Hard", Grade.HARD),
    (" GOOD ", Grade.GOOD),
    ("easy", Grade.EASY),
    (3, Grade.GOOD),
    (Grade.EASY, Grade.EASY),
])
def test_grade_parse(value, expected):
    assert Grade.parse(value) is expected


@pytest.mark.parametrize("value", ["medium", "", 0, 5, True, None, 2.5, "again!"])
def test_grade_parse_rejects_unknown_values(value):
    with pytest.raises(InvalidGrade) as excinfo:
        Grade.parse(value)
    assert excinfo.value.grade == value


def test_invalid_grade_is_a_value_error():
    with pytest.raises(ValueError):
        Grade.parse("meh")


def test_state_values_match_stored_integers():
    assert [int(s) for s in State] == [0, 1, 2, 3]


def test_default_parameters():
    assert DEFAULT_PARAMETERS.request_retention == 0.9
    assert DEFAULT_PARAMETERS.decay_factor == 9.0
    assert DEFAULT_PARAMETERS.relearning_interval_days == pytest.approx(10 / 1440)


@pytest.mark.parametrize("kwargs", [
    {"decay_factor": 0.0},
    {"request_retention": 1.0},
    {"stability_min": 0.0},
    {"difficulty_min": 10.0, "difficulty_max": 1.0},
    {"minimum_interval": timedelta(0)},
    {"maximum_interval": 0.001},
    {"maximum_interval": 5e6},
    {"maximum_interval": float("inf")},
    {"maximum_interval": float("nan")},
])
def test_invalid_parameters_are_rejected(kwargs):
    with pytest.raises(ValueError):
        SchedulerParameters(**kwargs)
