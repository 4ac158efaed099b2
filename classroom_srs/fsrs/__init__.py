"""
FSRS - Free Spaced Repetition Scheduler

Scheduling engine for flashcard reviews.

This package implements:
- Power forgetting curve: R = (1 + t / (9 * S)) ^ -1
- Stability/difficulty updates driven by four grades
- New -> Learning/Review -> Relearning lifecycle
- Storage contract with in-memory and SQLAlchemy adapters

Quick start:
    from classroom_srs import fsrs

    # Pure scheduling (no I/O)
    state = fsrs.schedule(None, fsrs.Grade.GOOD, now)

    # Persisted, per-key atomic update
    store = fsrs.InMemoryStateStore()
    store.update("learner", "deck-0", lambda prior: fsrs.schedule(prior, grade, now))
"""

# Core scheduler API (algorithm logic)
from classroom_srs.fsrs.scheduler import preview, process_review, schedule

# Storage
from classroom_srs.fsrs.store import InMemoryStateStore, MemoryStateStore
from classroom_srs.fsrs.database import SqlStateStore, get_engine, init_db

# Due-set selection
from classroom_srs.fsrs.selection import due_items

# Constants and parameters
from classroom_srs.fsrs.constants import (
    DEFAULT_PARAMETERS,
    DEFAULT_WEIGHTS,
    Grade,
    R_TARGET,
    SchedulerParameters,
    State,
)

# Memory state
from classroom_srs.fsrs.memory_state import (
    MemoryState,
    ReviewLog,
    calculate_retrievability,
    current_retrievability,
    new_memory_state,
    next_interval,
)


__all__ = [
    # Core algorithm
    "schedule",
    "process_review",
    "preview",

    # Storage
    "MemoryStateStore",
    "InMemoryStateStore",
    "SqlStateStore",
    "get_engine",
    "init_db",

    # Selection
    "due_items",

    # Enums and parameters
    "Grade",
    "State",
    "SchedulerParameters",
    "DEFAULT_PARAMETERS",
    "DEFAULT_WEIGHTS",
    "R_TARGET",

    # Memory state
    "MemoryState",
    "ReviewLog",
    "calculate_retrievability",
    "current_retrievability",
    "new_memory_state",
    "next_interval",
]
