"""
Seeding StudyTab decks and cards through the API.

Created resources carry the ``test-`` prefix. When a ``CleanupTracker`` is
given, every created deck and card is tracked, so the tracker deletes them
(cards before their deck) after the test.

Example:
    seeder = ApiSeeder(api_client, tracker=cleanup_tracker)
    seeded = await seed_test_deck(seeder)
    await page.goto(f"/decks/{seeded.deck.id}")
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel

from qaharness.api.client import ApiClient
from qaharness.config.logging_config import get_logger
from qaharness.data.factory import TEST_PREFIX
from qaharness.isolation.cleanup_tracker import CleanupTracker, TrackedResource

log = get_logger(__name__)

DECKS_PATH = "/v1/decks"
CARDS_PATH = "/v1/cards"


class NewCard(BaseModel):
    front: str
    back: str
    type: Literal["basic", "cloze", "mcq"] = "basic"


class CreatedDeck(BaseModel):
    id: str
    name: str


class SeededDeck(BaseModel):
    deck: CreatedDeck
    card_ids: list[str]


class ApiSeeder:
    """Creates decks and cards through the API and remembers their ids.

    Args:
        api: Client for the StudyTab API.
        tracker: Optional tracker that every created resource is registered with.
        project: Project name recorded on tracked resources.
    """

    def __init__(self, api: ApiClient, tracker: CleanupTracker | None = None, project: str = "studytab"):
        self.api = api
        self.tracker = tracker
        self.project = project
        self._deck_ids: list[str] = []
        self._card_ids: list[str] = []

    @staticmethod
    def generate_test_name(base_name: str) -> str:
        """``test-{base_name}-{epoch ms}-{random}``, unique per call."""
        return f"{TEST_PREFIX}{base_name}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"

    async def create_deck(self, name: str, description: str | None = None) -> CreatedDeck:
        if not name.startswith(TEST_PREFIX):
            name = self.generate_test_name(name)
        response = await self.api.post(
            DECKS_PATH,
            {
                "name": name,
                "description": description or f"Test deck created at {datetime.now().isoformat()}",
            },
        )
        deck = CreatedDeck(id=response["id"], name=response["name"])
        self._deck_ids.append(deck.id)
        if self.tracker is not None:
            self.tracker.track(
                TrackedResource.api("deck", deck.id, f"{DECKS_PATH}/{deck.id}", project=self.project, name=deck.name)
            )
        return deck

    async def create_card(self, deck_id: str, card: NewCard | Mapping[str, Any]) -> str:
        card = NewCard.model_validate(card)
        response = await self.api.post(
            CARDS_PATH,
            {"deckId": deck_id, "front": card.front, "back": card.back, "type": card.type},
        )
        card_id = response["id"]
        self._card_ids.append(card_id)
        if self.tracker is not None:
            self.tracker.track(TrackedResource.api("card", card_id, f"{CARDS_PATH}/{card_id}", project=self.project))
        return card_id

    async def create_deck_with_cards(
        self,
        name: str,
        cards: Iterable[NewCard | Mapping[str, Any]],
        description: str | None = None,
    ) -> SeededDeck:
        """Create a deck, then its cards one by one in order."""
        deck = await self.create_deck(name, description)
        card_ids = [await self.create_card(deck.id, card) for card in cards]
        return SeededDeck(deck=deck, card_ids=card_ids)

    async def delete_deck(self, deck_id: str) -> bool:
        """Delete a deck; failures are logged, not raised."""
        try:
            await self.api.delete(f"{DECKS_PATH}/{deck_id}")
        except Exception as e:
            log.warning(f"Failed to delete deck {deck_id}: {e}")
            return False
        self._deck_ids = [i for i in self._deck_ids if i != deck_id]
        return True

    async def delete_card(self, card_id: str) -> bool:
        """Delete a card; failures are logged, not raised."""
        try:
            await self.api.delete(f"{CARDS_PATH}/{card_id}")
        except Exception as e:
            log.warning(f"Failed to delete card {card_id}: {e}")
            return False
        self._card_ids = [i for i in self._card_ids if i != card_id]
        return True

    async def cleanup_created_data(self) -> None:
        """Delete every deck this seeder created; the API removes their cards."""
        log.info(f"Cleaning up {len(self._deck_ids)} decks and {len(self._card_ids)} cards...")
        for deck_id in list(self._deck_ids):
            await self.delete_deck(deck_id)
        self._deck_ids = []
        self._card_ids = []
        log.info("Seeded data cleanup completed")

    async def delete_test_data(self, prefix: str = TEST_PREFIX) -> int:
        """Delete every listed deck whose name starts with ``prefix``.

        Returns:
            The number of decks deleted.
        """
        decks = await self.api.get(DECKS_PATH)
        if not isinstance(decks, list):
            log.warning(f"Unexpected deck listing from {DECKS_PATH}: {type(decks).__name__}")
            return 0
        matching = [deck for deck in decks if str(deck.get("name", "")).startswith(prefix)]
        log.info(f"Found {len(matching)} test decks to delete")
        deleted = 0
        for deck in matching:
            if await self.delete_deck(deck["id"]):
                deleted += 1
        return deleted

    def get_created_deck_ids(self) -> list[str]:
        return list(self._deck_ids)

    def get_created_card_ids(self) -> list[str]:
        return list(self._card_ids)


SAMPLE_CARDS = [
    NewCard(front="What is the capital of France?", back="Paris"),
    NewCard(front="What is 2 + 2?", back="4"),
    NewCard(front="What color is the sky?", back="Blue"),
    NewCard(front="How many days in a week?", back="7"),
    NewCard(front="What is H2O?", back="Water"),
]

STUDY_READY_CARDS = [
    NewCard(front="Define photosynthesis", back="The process by which plants convert sunlight into energy"),
    NewCard(front="What is mitochondria?", back="The powerhouse of the cell"),
    NewCard(front="Name the largest planet", back="Jupiter"),
]


async def seed_test_deck(seeder: ApiSeeder) -> SeededDeck:
    """A deck with five basic question/answer cards."""
    return await seeder.create_deck_with_cards(
        "sample-deck", SAMPLE_CARDS, description="Standard test deck with sample flashcards"
    )


async def seed_empty_deck(seeder: ApiSeeder) -> SeededDeck:
    deck = await seeder.create_deck("empty-deck", description="Empty test deck with no cards")
    return SeededDeck(deck=deck, card_ids=[])


async def seed_study_ready_deck(seeder: ApiSeeder) -> SeededDeck:
    """A deck of new cards, ready for a study session."""
    return await seeder.create_deck_with_cards(
        "study-ready-deck", STUDY_READY_CARDS, description="Deck with cards ready for study session"
    )


async def seed_large_deck(seeder: ApiSeeder, card_count: int = 50) -> SeededDeck:
    cards = [
        NewCard(front=f"Question {i}: What is the answer to question {i}?", back=f"Answer {i}")
        for i in range(1, card_count + 1)
    ]
    return await seeder.create_deck_with_cards(
        "large-deck", cards, description=f"Large test deck with {card_count} cards for performance testing"
    )
