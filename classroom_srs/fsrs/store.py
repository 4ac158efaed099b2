"""
Memory State Store - storage contract and in-process adapter

The scheduler never touches storage. Callers go through a MemoryStateStore.
`update` runs the read-modify-write for one (learner, item) key as a single
atomic unit; `record_review` does the same and also stores the review log in
that unit, so a grade is either fully recorded or not at all.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional, Protocol

from classroom_srs.fsrs.memory_state import MemoryState, ReviewLog


StateUpdate = Callable[[Optional[MemoryState]], MemoryState]
ReviewUpdate = Callable[[Optional[MemoryState]], tuple[MemoryState, ReviewLog]]


class MemoryStateStore(Protocol):
    """Key-value storage for one MemoryState per (learner, item)."""

    def get(self, learner_id: str, item_id: str) -> Optional[MemoryState]:
        ...

    def get_many(self, learner_id: str, item_ids: Iterable[str]) -> dict[str, MemoryState]:
        ...

    def put(self, learner_id: str, item_id: str, state: MemoryState) -> None:
        ...

    def update(self, learner_id: str, item_id: str, fn: StateUpdate) -> MemoryState:
        ...

    def record_review(
        self, learner_id: str, item_id: str, fn: ReviewUpdate
    ) -> tuple[MemoryState, ReviewLog]:
        ...

    def list_states(self, learner_id: str) -> dict[str, MemoryState]:
        ...

    def log_review(self, log: ReviewLog) -> None:
        ...

    def recent_reviews(self, learner_id: str, limit: int = 10) -> list[ReviewLog]:
        ...


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    """
    One lock per (learner, item) key.

    A key's lock exists only while some thread holds or waits for it, so the
    map stays as small as the number of in-flight updates.
    """

    def __init__(self):
        self._locks: dict[tuple[str, str], _KeyLock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def __call__(self, learner_id: str, item_id: str) -> Iterator[None]:
        key = (learner_id, item_id)
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]


class InMemoryStateStore:
    """
    Dict-backed store for tests and single-process use.

    Each key has its own lock, so grading different items never contends
    while concurrent grades of the same item are serialized.
    """

    def __init__(self):
        self._states: dict[tuple[str, str], MemoryState] = {}
        self._reviews: list[ReviewLog] = []
        self._key_locks = KeyedLocks()
        self._log_guard = threading.Lock()

    def get(self, learner_id: str, item_id: str) -> Optional[MemoryState]:
        return self._states.get((learner_id, item_id))

    def get_many(self, learner_id: str, item_ids: Iterable[str]) -> dict[str, MemoryState]:
        result = {}
        for item_id in item_ids:
            state = self._states.get((learner_id, item_id))
            if state is not None:
                result[item_id] = state
        return result

    def put(self, learner_id: str, item_id: str, state: MemoryState) -> None:
        key = (learner_id, item_id)
        with self._key_locks(learner_id, item_id):
            self._states[key] = state

    def update(self, learner_id: str, item_id: str, fn: StateUpdate) -> MemoryState:
        key = (learner_id, item_id)
        with self._key_locks(learner_id, item_id):
            new_state = fn(self._states.get(key))
            self._states[key] = new_state
            return new_state

    def record_review(
        self, learner_id: str, item_id: str, fn: ReviewUpdate
    ) -> tuple[MemoryState, ReviewLog]:
        key = (learner_id, item_id)
        with self._key_locks(learner_id, item_id):
            new_state, log = fn(self._states.get(key))
            self.log_review(log)
            self._states[key] = new_state
            return new_state, log

    def list_states(self, learner_id: str) -> dict[str, MemoryState]:
        return {
            item_id: state
            for (owner, item_id), state in list(self._states.items())
            if owner == learner_id
        }

    def log_review(self, log: ReviewLog) -> None:
        with self._log_guard:
            self._reviews.append(log)

    def recent_reviews(self, learner_id: str, limit: int = 10) -> list[ReviewLog]:
        with self._log_guard:
            mine = [log for log in self._reviews if log.learner_id == learner_id]
        mine.sort(key=lambda log: log.reviewed_at, reverse=True)
        return mine[:limit]
