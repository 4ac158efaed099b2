import threading
from datetime import datetime, timedelta, timezone

import pytest

from classroom_srs.fsrs import Grade, InMemoryStateStore, process_review, schedule
from classroom_srs.fsrs.store import KeyedLocks


T = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def test_missing_record_is_none():
    store = InMemoryStateStore()
    assert store.get("s1", "quiz1-0") is None
    assert store.get_many("s1", ["quiz1-0"]) == {}
    assert store.list_states("s1") == {}


def test_put_and_get_are_scoped_by_learner():
    store = InMemoryStateStore()
    state = schedule(None, Grade.GOOD, T)
    store.put("s1", "quiz1-0", state)

    assert store.get("s1", "quiz1-0") == state
    assert store.get("s2", "quiz1-0") is None
    assert store.list_states("s1") == {"quiz1-0": state}
    assert store.get_many("s1", ["quiz1-0", "quiz1-1"]) == {"quiz1-0": state}


def test_update_passes_prior_state():
    store = InMemoryStateStore()
    seen = []

    def grade_good(prior):
        seen.append(prior)
        return schedule(prior, Grade.GOOD, T)

    first = store.update("s1", "quiz1-0", grade_good)
    second = store.update("s1", "quiz1-0", grade_good)

    assert seen == [None, first]
    assert second.reps == 2
    assert store.get("s1", "quiz1-0") == second


def test_concurrent_updates_on_one_key_are_not_lost():
    store = InMemoryStateStore()
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for _ in range(25):
            store.update("s1", "quiz1-0", lambda prior: schedule(prior, Grade.GOOD, T))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.get("s1", "quiz1-0").reps == 200
    assert len(store._key_locks) == 0


def test_recent_reviews_newest_first_and_limited():
    store = InMemoryStateStore()
    state = None
    for day in range(4):
        state, log = process_review(
            state, Grade.GOOD, T + timedelta(days=day), learner_id="s1", item_id="quiz1-0"
        )
        store.log_review(log)
    _, other = process_review(None, Grade.EASY, T, learner_id="s2", item_id="quiz1-0")
    store.log_review(other)

    recent = store.recent_reviews("s1", limit=3)

    assert [log.reviewed_at for log in recent] == [
        T + timedelta(days=3), T + timedelta(days=2), T + timedelta(days=1)
    ]
    assert all(log.learner_id == "s1" for log in recent)


def test_record_review_stores_state_and_log_together():
    store = InMemoryStateStore()

    state, log = store.record_review(
        "s1", "quiz1-0",
        lambda prior: process_review(prior, Grade.GOOD, T, learner_id="s1", item_id="quiz1-0")
    )

    assert store.get("s1", "quiz1-0") == state
    assert store.recent_reviews("s1") == [log]


def test_record_review_keeps_prior_state_when_log_write_fails(monkeypatch):
    store = InMemoryStateStore()
    before = store.update("s1", "quiz1-0", lambda prior: schedule(prior, Grade.GOOD, T))

    def broken_log(log):
        raise RuntimeError("log unavailable")

    monkeypatch.setattr(store, "log_review", broken_log)

    with pytest.raises(RuntimeError):
        store.record_review(
            "s1", "quiz1-0",
            lambda prior: process_review(prior, Grade.GOOD, T + timedelta(days=3))
        )

    assert store.get("s1", "quiz1-0") == before


def test_key_locks_are_released_after_use():
    locks = KeyedLocks()

    with locks("s1", "quiz1-0"):
        with locks("s1", "quiz1-1"):
            assert len(locks) == 2
    assert len(locks) == 0


def test_key_locks_serialize_one_key():
    locks = KeyedLocks()
    inside = []
    overlaps = []

    def worker():
        for _ in range(50):
            with locks("s1", "quiz1-0"):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(1)
                inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert len(locks) == 0


def test_store_does_not_keep_a_lock_per_graded_key():
    store = InMemoryStateStore()
    for index in range(200):
        store.update("s1", f"quiz1-{index}", lambda prior: schedule(prior, Grade.GOOD, T))

    assert len(store._key_locks) == 0
