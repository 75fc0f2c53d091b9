from .factory import (
    TEST_PREFIX,
    CardData,
    DeckData,
    McqCardData,
    PomodoroSessionData,
    StudySessionData,
    TestDataFactory,
    UserData,
)
from .seeder import (
    ApiSeeder,
    CreatedDeck,
    NewCard,
    SeededDeck,
    seed_empty_deck,
    seed_large_deck,
    seed_study_ready_deck,
    seed_test_deck,
)

__all__ = [
    "TEST_PREFIX",
    "ApiSeeder",
    "CardData",
    "CreatedDeck",
    "DeckData",
    "McqCardData",
    "NewCard",
    "PomodoroSessionData",
    "SeededDeck",
    "StudySessionData",
    "TestDataFactory",
    "UserData",
    "seed_empty_deck",
    "seed_large_deck",
    "seed_study_ready_deck",
    "seed_test_deck",
]
