"""
Pydantic models for quiz content documents.

A flashcard quiz stores its cards as an ordered list inside the quiz
document's content. Card identifiers are derived from the quiz id and the
card's position, so reordering a deck changes its card ids.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


FLASHCARD_QUIZ_TYPE = "FLASHCARD"


class FlashcardContent(BaseModel):
    """Front/back text of one card as authored."""
    front: str = Field(..., description="Prompt side")
    back: str = Field(..., description="Answer side")
    hint: Optional[str] = None


class QuizContent(BaseModel):
    """Parsed content of a quiz document."""
    model_config = ConfigDict(extra="ignore")

    flashcards: list[FlashcardContent] = Field(default_factory=list)


class QuizDocument(BaseModel):
    """Quiz document as stored in the content database."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    quiz_id: str = Field(..., alias="_id")
    type: str
    content: QuizContent = Field(default_factory=QuizContent)

    @field_validator("quiz_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("content", mode="before")
    @classmethod
    def _parse_json_content(cls, value: Any) -> Any:
        # Older quizzes keep content as a JSON string
        if isinstance(value, str):
            return json.loads(value) if value.strip() else {}
        return value

    @property
    def is_flashcard_deck(self) -> bool:
        return self.type == FLASHCARD_QUIZ_TYPE


class Flashcard(BaseModel):
    """A card together with its stable identifier."""
    model_config = ConfigDict(frozen=True)

    item_id: str
    deck_id: str
    front: str
    back: str
    hint: Optional[str] = None


def make_item_id(deck_id: str, index: int) -> str:
    return f"{deck_id}-{index}"


def split_item_id(item_id: str) -> Optional[tuple[str, int]]:
    """
    Inverse of make_item_id. Returns None for ids not of the form
    '<deck_id>-<index>'.
    """
    deck_id, sep, index = item_id.rpartition("-")
    if not sep or not deck_id or not index.isdigit():
        return None
    return deck_id, int(index)


def cards_for_deck(deck_id: str, contents: list[FlashcardContent]) -> list[Flashcard]:
    """Attach position-derived ids to a deck's cards."""
    return [
        Flashcard(
            item_id=make_item_id(deck_id, index),
            deck_id=deck_id,
            front=content.front,
            back=content.back,
            hint=content.hint,
        )
        for index, content in enumerate(contents)
    ]
