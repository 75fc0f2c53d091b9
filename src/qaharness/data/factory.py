"""
Generated payloads for test data.

Every generated name or email starts with ``TEST_PREFIX`` so leftovers can be
found and removed later (see ``ApiSeeder.delete_test_data``). Models dump to
the camelCase field names the API expects with ``model_dump(by_alias=True)``.
"""

from __future__ import annotations

import random
import uuid
from typing import Callable, Literal, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

TEST_PREFIX = "test-"

NOUNS = (
    "atom", "biology", "canyon", "cell", "comet", "delta", "enzyme", "fossil",
    "galaxy", "glacier", "harbor", "island", "lens", "magnet", "meadow", "neuron",
    "orbit", "prism", "quartz", "river", "spectrum", "tundra", "valley", "volcano",
)
WORDS = (
    "active", "memory", "review", "spaced", "repetition", "concept", "recall",
    "practice", "learning", "daily", "session", "simple", "question", "answer",
    "focus", "method", "study", "quickly", "every", "notes",
)

PomodoroType = Literal["work", "short_break", "long_break"]
POMODORO_DURATIONS: dict[str, int] = {"work": 25, "short_break": 5, "long_break": 15}


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserData(Payload):
    email: str
    password: str
    name: str


class DeckData(Payload):
    name: str
    description: str | None = None
    is_public: bool = False


class CardData(Payload):
    type: str
    front: str
    back: str
    deck_id: str | None = None


class McqCardData(CardData):
    options: list[str]
    correct_index: int


class StudySessionData(Payload):
    duration: int
    cards_studied: int
    correct_answers: int


class PomodoroSessionData(Payload):
    type: PomodoroType
    duration: int


class TestDataFactory:
    """Builds unique, recognisable test payloads.

    Args:
        seed: Seed for the generator; the same seed yields the same sequence.
    """

    __test__ = False

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def _short_id(self) -> str:
        return uuid.UUID(int=self._random.getrandbits(128)).hex[:8]

    def _noun(self) -> str:
        return self._random.choice(NOUNS)

    def _sentence(self) -> str:
        words = self._random.choices(WORDS, k=self._random.randint(4, 9))
        return " ".join(words).capitalize() + "."

    def unique_id(self) -> str:
        return f"{TEST_PREFIX}{self._short_id()}"

    def user(self) -> UserData:
        short_id = self._short_id()
        return UserData(
            email=f"{TEST_PREFIX}{short_id}@example.com",
            password="Test123!",
            name=f"Test User {short_id}",
        )

    def deck(self, **overrides) -> DeckData:
        fields = {
            "name": f"{TEST_PREFIX}Deck {self._noun()}",
            "description": self._sentence(),
            "is_public": False,
        }
        return DeckData(**{**fields, **overrides})

    def card(self, **overrides) -> CardData:
        fields = {"type": "BASIC", "front": self._sentence(), "back": self._sentence()}
        return CardData(**{**fields, **overrides})

    def mcq_card(self) -> McqCardData:
        """Four options; the first one is correct."""
        options = [self._noun() for _ in range(4)]
        return McqCardData(
            type="MCQ",
            front=f"What is the correct answer for: {self._sentence()}?",
            back=options[0],
            options=options,
            correct_index=0,
        )

    def cloze_card(self) -> CardData:
        word = self._noun()
        return CardData(
            type="CLOZE",
            front=f"The {{{{c1::{word}}}}} is important for learning.",
            back=word,
        )

    def study_session(self) -> StudySessionData:
        cards_studied = self._random.randint(10, 100)
        return StudySessionData(
            duration=self._random.randint(5, 60),
            cards_studied=cards_studied,
            correct_answers=self._random.randint(5, min(50, cards_studied)),
        )

    def pomodoro_session(self) -> PomodoroSessionData:
        kind = self._random.choice(list(POMODORO_DURATIONS))
        return PomodoroSessionData(type=kind, duration=POMODORO_DURATIONS[kind])

    @staticmethod
    def many(generator: Callable[[], T], count: int) -> list[T]:
        return [generator() for _ in range(count)]

    @staticmethod
    def is_test_data(value: str) -> bool:
        return value.startswith(TEST_PREFIX)
