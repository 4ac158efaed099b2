from datetime import datetime, timezone

import pytest

from classroom_srs.content_repo import InMemoryContentStore
from classroom_srs.fsrs import InMemoryStateStore, MemoryState, State
from classroom_srs.service import ReviewService


T = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return T


@pytest.fixture
def review_state():
    """A card in review: 5 days stable, default difficulty, reviewed at T."""
    return MemoryState(
        state=State.REVIEW,
        stability=5.0,
        difficulty=4.93,
        elapsed_days=2.4,
        scheduled_days=5.0,
        reps=2,
        lapses=0,
        due=datetime(2026, 3, 7, 9, 30, tzinfo=timezone.utc),
        last_review=T,
    )


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def content_store():
    return InMemoryContentStore({
        "quiz1": [
            {"front": "2 + 2", "back": "4"},
            {"front": "Capital of France", "back": "Paris", "hint": "City of light"},
            {"front": "H2O", "back": "Water"},
        ],
    })


@pytest.fixture
def service(state_store, content_store):
    return ReviewService(state_store, content_store)
