"""
SQLAlchemy ORM Models for FSRS Database

Defines CardProgress and ReviewEvent tables for relational persistence.
"""

from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CardProgress(Base):
    """
    Persistent memory state for one learner on one card.
    """
    __tablename__ = 'card_progress'

    # Primary key: composite of learner_id and item_id
    learner_id = Column(String(255), primary_key=True, nullable=False)
    item_id = Column(String(255), primary_key=True, nullable=False)

    state = Column(Integer, nullable=False)  # 0=NEW, 1=LEARNING, 2=REVIEW, 3=RELEARNING
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)
    elapsed_days = Column(Float, nullable=False, default=0.0)
    scheduled_days = Column(Float, nullable=False, default=0.0)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)

    due_date = Column(DateTime(timezone=True), nullable=False)
    last_review = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_card_progress_learner_due', 'learner_id', 'due_date'),
    )

    def __repr__(self):
        return f"<CardProgress({self.learner_id}, {self.item_id}, state={self.state})>"


class ReviewEvent(Base):
    """
    Log entry for a single grading event.

    Captures the memory state before and after the review.
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)

    learner_id = Column(String(255), nullable=False, index=True)
    item_id = Column(String(255), nullable=False)

    reviewed_at = Column(DateTime(timezone=True), nullable=False)
    grade = Column(Integer, nullable=False)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY

    # State before review
    state_before = Column(Integer, nullable=False)
    stability_before = Column(Float, nullable=True)
    difficulty_before = Column(Float, nullable=True)
    retrievability_before = Column(Float, nullable=True)

    # State after review
    state_after = Column(Integer, nullable=False)
    stability_after = Column(Float, nullable=False)
    difficulty_after = Column(Float, nullable=False)

    elapsed_days = Column(Float, nullable=False)
    scheduled_days = Column(Float, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.learner_id}/{self.item_id}, grade={self.grade})>"
