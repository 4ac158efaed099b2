"""
Review service - the engine's external interface.

Composes the content store, the memory state store and the pure scheduler:

1. Validate the grade and the item at the boundary
2. Atomically load prior state, schedule, persist the state and the
   review event together
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from classroom_srs import fsrs
from classroom_srs.analytics import SrsStats, compute_stats
from classroom_srs.config import Settings, load_settings
from classroom_srs.content_repo import ContentStore, MongoContentStore
from classroom_srs.errors import ItemNotFound
from classroom_srs.fsrs import Grade, MemoryState, MemoryStateStore, ReviewLog, State
from classroom_srs.fsrs.memory_state import ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueCard:
    """A card ready for review, with its progress (None fields if unseen)."""
    item_id: str
    front: str
    back: str
    hint: Optional[str]
    due: Optional[datetime]
    state: State
    reps: int
    lapses: int


class ReviewService:
    """
    Grading, due-card listing and statistics for learners.
    """

    def __init__(
        self,
        state_store: MemoryStateStore,
        content_store: ContentStore,
        params: fsrs.SchedulerParameters = fsrs.DEFAULT_PARAMETERS
    ):
        self.state_store = state_store
        self.content_store = content_store
        self.params = params

    def grade_item(
        self,
        learner_id: str,
        item_id: str,
        grade: Union[Grade, int, str],
        now: datetime
    ) -> MemoryState:
        """
        Record a review and return the item's new memory state.

        Raises:
            InvalidGrade: grade is not again/hard/good/easy
            ItemNotFound: the content store has no such item
        """
        grade = Grade.parse(grade)
        if self.content_store.get_card(item_id) is None:
            raise ItemNotFound(item_id)

        def _apply(prior: Optional[MemoryState]) -> tuple[MemoryState, ReviewLog]:
            return fsrs.process_review(
                prior, grade, now,
                params=self.params,
                learner_id=learner_id,
                item_id=item_id
            )

        new_state, _ = self.state_store.record_review(learner_id, item_id, _apply)

        logger.info(
            "Graded %s for %s as %s: %s, next due %s",
            item_id, learner_id, grade.name, new_state.state.name,
            new_state.due.isoformat()
        )
        return new_state

    def get_due_items(self, learner_id: str, deck_id: str, now: datetime) -> list[DueCard]:
        """
        Cards of a deck the learner should review at `now`, in review order.
        """
        cards = self.content_store.deck_cards(deck_id)
        if not cards:
            logger.warning("Deck %s has no flashcards", deck_id)
            return []

        by_id = {card.item_id: card for card in cards}
        due_ids = fsrs.due_items(self.state_store, learner_id, list(by_id), now)
        states = self.state_store.get_many(learner_id, due_ids)

        result = []
        for item_id in due_ids:
            card = by_id[item_id]
            state = states.get(item_id)
            result.append(DueCard(
                item_id=item_id,
                front=card.front,
                back=card.back,
                hint=card.hint,
                due=state.due if state else None,
                state=state.state if state else State.NEW,
                reps=state.reps if state else 0,
                lapses=state.lapses if state else 0,
            ))
        return result

    def get_stats(self, learner_id: str, now: datetime) -> SrsStats:
        return compute_stats(
            self.state_store.list_states(learner_id),
            ensure_utc(now),
            params=self.params
        )

    def preview_item(
        self,
        learner_id: str,
        item_id: str,
        now: datetime
    ) -> dict[Grade, MemoryState]:
        """What each grade would do to the item, without saving anything."""
        if self.content_store.get_card(item_id) is None:
            raise ItemNotFound(item_id)
        prior = self.state_store.get(learner_id, item_id)
        return fsrs.preview(prior, now, params=self.params)

    def recent_reviews(self, learner_id: str, limit: int = 10) -> list[ReviewLog]:
        return self.state_store.recent_reviews(learner_id, limit)


def build_service(settings: Optional[Settings] = None) -> ReviewService:
    """
    Wire a ReviewService from environment settings: SQL progress store,
    MongoDB content store.
    """
    settings = settings or load_settings()
    params = fsrs.SchedulerParameters(
        request_retention=settings.target_retention,
        maximum_interval=settings.maximum_interval,
    )
    return ReviewService(
        state_store=fsrs.SqlStateStore.from_url(settings.database_url),
        content_store=MongoContentStore(mongo_uri=settings.mongo_uri, db_name=settings.mongo_db),
        params=params,
    )
