"""
Exceptions raised at the boundaries of the review engine.

The scheduler itself never raises for in-domain input; these cover bad caller
input, missing content and broken configuration.
"""

from __future__ import annotations

from typing import Any


class SrsError(Exception):
    """Base class for all engine errors."""


class InvalidGrade(SrsError, ValueError):
    """Grade is not one of again/hard/good/easy."""

    def __init__(self, grade: Any):
        self.grade = grade
        super().__init__(
            f"Invalid grade {grade!r}; expected one of 'again', 'hard', 'good', 'easy'"
        )


class ItemNotFound(SrsError, LookupError):
    """The content store has no card with this identifier."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item {item_id!r} not found")


class ConfigurationError(SrsError):
    """Environment settings are missing or malformed."""
