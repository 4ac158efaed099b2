"""
Database - FSRS Database I/O Operations

SQLAlchemy implementation of the MemoryStateStore contract.

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from classroom_srs.fsrs.constants import Grade, State
from classroom_srs.fsrs.memory_state import MemoryState, ReviewLog, ensure_utc
from classroom_srs.fsrs.models import Base, CardProgress, ReviewEvent
from classroom_srs.fsrs.store import KeyedLocks, ReviewUpdate, StateUpdate

logger = logging.getLogger(__name__)


def get_engine(database_url: str) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    Server databases get a connection pool; SQLite uses SQLAlchemy's defaults.

    Returns:
        SQLAlchemy Engine instance
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_engine(url, echo=False)

    return create_engine(
        url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def init_db(engine: Engine) -> None:
    """
    Create card_progress and review_events if they don't exist.

    Safe to call multiple times.
    """
    Base.metadata.create_all(engine)


def _row_to_state(row: CardProgress) -> MemoryState:
    return MemoryState(
        state=State(row.state),
        stability=row.stability,
        difficulty=row.difficulty,
        elapsed_days=row.elapsed_days,
        scheduled_days=row.scheduled_days,
        reps=row.reps,
        lapses=row.lapses,
        due=ensure_utc(row.due_date),
        last_review=ensure_utc(row.last_review) if row.last_review else None,
    )


def _apply_state(row: CardProgress, state: MemoryState) -> None:
    row.state = int(state.state)
    row.stability = state.stability
    row.difficulty = state.difficulty
    row.elapsed_days = state.elapsed_days
    row.scheduled_days = state.scheduled_days
    row.reps = state.reps
    row.lapses = state.lapses
    row.due_date = ensure_utc(state.due)
    row.last_review = ensure_utc(state.last_review) if state.last_review else None


def _event_to_log(event: ReviewEvent) -> ReviewLog:
    return ReviewLog(
        learner_id=event.learner_id,
        item_id=event.item_id,
        grade=Grade(event.grade),
        state_before=State(event.state_before),
        state_after=State(event.state_after),
        stability_before=event.stability_before,
        stability_after=event.stability_after,
        difficulty_before=event.difficulty_before,
        difficulty_after=event.difficulty_after,
        retrievability_before=event.retrievability_before,
        elapsed_days=event.elapsed_days,
        scheduled_days=event.scheduled_days,
        due=ensure_utc(event.due_date),
        reviewed_at=ensure_utc(event.reviewed_at),
    )


def _log_to_event(log: ReviewLog) -> ReviewEvent:
    return ReviewEvent(
        learner_id=log.learner_id,
        item_id=log.item_id,
        reviewed_at=ensure_utc(log.reviewed_at),
        grade=int(log.grade),
        state_before=int(log.state_before),
        stability_before=log.stability_before,
        difficulty_before=log.difficulty_before,
        retrievability_before=log.retrievability_before,
        state_after=int(log.state_after),
        stability_after=log.stability_after,
        difficulty_after=log.difficulty_after,
        elapsed_days=log.elapsed_days,
        scheduled_days=log.scheduled_days,
        due_date=ensure_utc(log.due),
    )


class SqlStateStore:
    """
    Card progress persisted in a relational database.

    `update` locks the row with SELECT ... FOR UPDATE for the whole
    read-modify-write; within one process the same key is also serialized
    with a lock so SQLite (which ignores FOR UPDATE) gets the same guarantee.
    `record_review` writes the review event in that same transaction.
    """

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._key_locks = KeyedLocks()
        if create_tables:
            init_db(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlStateStore":
        return cls(get_engine(database_url))

    def _session(self) -> Session:
        return self._session_factory()

    def _select_row(self, session: Session, learner_id: str, item_id: str, lock: bool = False):
        stmt = select(CardProgress).where(
            CardProgress.learner_id == learner_id,
            CardProgress.item_id == item_id
        )
        if lock:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def get(self, learner_id: str, item_id: str) -> Optional[MemoryState]:
        session = self._session()
        try:
            row = self._select_row(session, learner_id, item_id)
            return _row_to_state(row) if row is not None else None
        finally:
            session.close()

    def get_many(self, learner_id: str, item_ids: Iterable[str]) -> dict[str, MemoryState]:
        item_ids = list(item_ids)
        if not item_ids:
            return {}

        session = self._session()
        try:
            rows = session.execute(
                select(CardProgress).where(
                    CardProgress.learner_id == learner_id,
                    CardProgress.item_id.in_(item_ids)
                )
            ).scalars().all()
            return {row.item_id: _row_to_state(row) for row in rows}
        finally:
            session.close()

    def put(self, learner_id: str, item_id: str, state: MemoryState) -> None:
        self.update(learner_id, item_id, lambda _prior: state)

    def update(self, learner_id: str, item_id: str, fn: StateUpdate) -> MemoryState:
        """
        Atomically read, transform and write one record.

        Two transactions racing to create the same row: the loser gets an
        IntegrityError and is retried once, by which time the row exists and
        can be locked.
        """
        new_state, _ = self._write(learner_id, item_id, lambda prior: (fn(prior), None))
        return new_state

    def record_review(
        self, learner_id: str, item_id: str, fn: ReviewUpdate
    ) -> tuple[MemoryState, ReviewLog]:
        """Like update, with the review event committed in the same transaction."""
        return self._write(learner_id, item_id, fn)

    def _write(self, learner_id: str, item_id: str, fn):
        with self._key_locks(learner_id, item_id):
            try:
                return self._update_once(learner_id, item_id, fn)
            except IntegrityError:
                logger.info(
                    "Concurrent insert for %s/%s, retrying update", learner_id, item_id
                )
                return self._update_once(learner_id, item_id, fn)

    def _update_once(self, learner_id: str, item_id: str, fn):
        session = self._session()
        try:
            row = self._select_row(session, learner_id, item_id, lock=True)
            prior = _row_to_state(row) if row is not None else None

            new_state, log = fn(prior)

            if row is None:
                row = CardProgress(learner_id=learner_id, item_id=item_id)
                session.add(row)
            _apply_state(row, new_state)
            if log is not None:
                session.add(_log_to_event(log))

            session.commit()
            return new_state, log
        finally:
            session.close()

    def list_states(self, learner_id: str) -> dict[str, MemoryState]:
        session = self._session()
        try:
            rows = session.execute(
                select(CardProgress).where(CardProgress.learner_id == learner_id)
            ).scalars().all()
            return {row.item_id: _row_to_state(row) for row in rows}
        finally:
            session.close()

    def log_review(self, log: ReviewLog) -> None:
        session = self._session()
        try:
            session.add(_log_to_event(log))
            session.commit()
        finally:
            session.close()

    def recent_reviews(self, learner_id: str, limit: int = 10) -> list[ReviewLog]:
        """Most recent review events for a learner, newest first."""
        session = self._session()
        try:
            events = session.execute(
                select(ReviewEvent)
                .where(ReviewEvent.learner_id == learner_id)
                .order_by(ReviewEvent.reviewed_at.desc(), ReviewEvent.id.desc())
                .limit(limit)
            ).scalars().all()
            return [_event_to_log(event) for event in events]
        finally:
            session.close()
