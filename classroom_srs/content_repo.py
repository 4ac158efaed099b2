"""
Content repositories for flashcard decks.

The review engine only needs two things from content storage: the ordered
cards of a deck and a single card by id. Quizzes live in MongoDB in
production; tests and scripts use the in-memory repository.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.collection import Collection

from classroom_srs.errors import ConfigurationError
from classroom_srs.schemas import (
    Flashcard,
    FlashcardContent,
    QuizDocument,
    cards_for_deck,
    split_item_id,
)

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_DB_NAME = "classroom"
COLLECTION_NAME = "quizzes"


class ContentStore(Protocol):
    """Read-only access to flashcard decks."""

    def deck_cards(self, deck_id: str) -> list[Flashcard]:
        ...

    def get_card(self, item_id: str) -> Optional[Flashcard]:
        ...


def _card_at(cards: Sequence[Flashcard], item_id: str) -> Optional[Flashcard]:
    parsed = split_item_id(item_id)
    if parsed is None:
        return None
    _, index = parsed
    if index >= len(cards):
        return None
    return cards[index]


class InMemoryContentStore:
    """
    Decks held in a dict: deck_id -> list of card contents.
    """

    def __init__(
        self,
        decks: Optional[Mapping[str, Sequence[Union[FlashcardContent, Mapping[str, Any]]]]] = None
    ):
        self._decks: dict[str, list[Flashcard]] = {}
        for deck_id, cards in (decks or {}).items():
            self.add_deck(deck_id, cards)

    def add_deck(
        self,
        deck_id: str,
        cards: Sequence[Union[FlashcardContent, Mapping[str, Any]]]
    ) -> list[Flashcard]:
        contents = [FlashcardContent.model_validate(card) for card in cards]
        self._decks[deck_id] = cards_for_deck(deck_id, contents)
        return self._decks[deck_id]

    def deck_cards(self, deck_id: str) -> list[Flashcard]:
        return list(self._decks.get(deck_id, []))

    def get_card(self, item_id: str) -> Optional[Flashcard]:
        parsed = split_item_id(item_id)
        if parsed is None:
            return None
        return _card_at(self._decks.get(parsed[0], []), item_id)


class MongoContentStore:
    """
    Flashcard quizzes stored as documents:

        {"_id": <quiz id>, "type": "FLASHCARD",
         "content": {"flashcards": [{"front", "back", "hint"}, ...]}}

    Quizzes of any other type, or missing quizzes, have no cards.
    """

    def __init__(
        self,
        collection: Optional[Collection] = None,
        mongo_uri: Optional[str] = None,
        db_name: str = DEFAULT_DB_NAME
    ):
        self._collection = collection
        self._mongo_uri = mongo_uri
        self._db_name = db_name
        self._client: Optional[MongoClient] = None

    # ---- Connection Management ----

    def get_collection(self) -> Collection:
        """
        Quiz collection, connecting lazily on first use.

        The client is kept for the lifetime of the store so the connection
        pool is reused across requests.
        """
        if self._collection is not None:
            return self._collection

        if not self._mongo_uri:
            raise ConfigurationError("MONGO_URI not set; cannot reach the content database")

        self._client = MongoClient(
            self._mongo_uri,
            maxPoolSize=10,  # Connection pool size
            minPoolSize=1,   # Keep at least 1 connection alive
            maxIdleTimeMS=60000  # Keep connections alive for 60 seconds
        )
        self._collection = self._client[self._db_name][COLLECTION_NAME]
        return self._collection

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._collection = None

    # ---- Query Functions ----

    def _load_quiz(self, deck_id: str) -> Optional[QuizDocument]:
        document = self.get_collection().find_one({"_id": deck_id})
        if document is None:
            return None
        try:
            return QuizDocument.model_validate(document)
        except ValidationError:
            logger.warning("Quiz %s has malformed content; treating it as empty", deck_id)
            return None

    def deck_cards(self, deck_id: str) -> list[Flashcard]:
        """
        Cards of a flashcard quiz, in authored order.

        Returns an empty list for unknown or non-flashcard quizzes.
        """
        quiz = self._load_quiz(deck_id)
        if quiz is None or not quiz.is_flashcard_deck:
            return []
        return cards_for_deck(deck_id, quiz.content.flashcards)

    def get_card(self, item_id: str) -> Optional[Flashcard]:
        parsed = split_item_id(item_id)
        if parsed is None:
            return None
        return _card_at(self.deck_cards(parsed[0]), item_id)
