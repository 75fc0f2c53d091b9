"""Tests for TestDataFactory."""

import re

from qaharness.data import TEST_PREFIX, TestDataFactory


class TestDataFactoryPayloads:
    """Tests for generated payloads."""

    def test_unique_id(self):
        """Test that ids carry the prefix and do not repeat."""
        factory = TestDataFactory()
        ids = factory.many(factory.unique_id, 50)

        assert all(re.fullmatch(r"test-[0-9a-f]{8}", i) for i in ids)
        assert len(set(ids)) == 50

    def test_user(self):
        """Test that users share one short id between email and name."""
        user = TestDataFactory().user()

        short_id = user.email[len(TEST_PREFIX):].split("@")[0]
        assert user.email == f"test-{short_id}@example.com"
        assert user.name == f"Test User {short_id}"
        assert user.password == "Test123!"

    def test_deck_defaults_and_overrides(self):
        """Test deck defaults, overrides and the camelCase dump."""
        factory = TestDataFactory()

        deck = factory.deck()
        assert deck.name.startswith("test-Deck ")
        assert deck.description.endswith(".")
        assert deck.is_public is False

        public = factory.deck(is_public=True, name="test-Shared")
        assert public.model_dump(by_alias=True) == {
            "name": "test-Shared",
            "description": public.description,
            "isPublic": True,
        }

    def test_cards(self):
        """Test the basic, multiple choice and cloze card shapes."""
        factory = TestDataFactory()

        basic = factory.card(deck_id="d1")
        assert basic.type == "BASIC"
        assert basic.model_dump(by_alias=True)["deckId"] == "d1"

        mcq = factory.mcq_card()
        assert mcq.type == "MCQ"
        assert len(mcq.options) == 4
        assert mcq.correct_index == 0
        assert mcq.back == mcq.options[0]

        cloze = factory.cloze_card()
        assert cloze.type == "CLOZE"
        assert cloze.front == f"The {{{{c1::{cloze.back}}}}} is important for learning."

    def test_sessions(self):
        """Test that session payloads stay within sensible ranges."""
        factory = TestDataFactory()
        for study in factory.many(factory.study_session, 20):
            assert 5 <= study.duration <= 60
            assert 10 <= study.cards_studied <= 100
            assert 5 <= study.correct_answers <= min(50, study.cards_studied)

        durations = {"work": 25, "short_break": 5, "long_break": 15}
        for pomodoro in factory.many(factory.pomodoro_session, 20):
            assert pomodoro.duration == durations[pomodoro.type]


class TestDataFactoryHelpers:
    """Tests for seeding and prefix checks."""

    def test_seed_is_reproducible(self):
        """Test that equal seeds produce equal data."""
        first = TestDataFactory(seed=7)
        second = TestDataFactory(seed=7)

        assert [first.user(), first.deck()] == [second.user(), second.deck()]
        assert TestDataFactory(seed=8).unique_id() != TestDataFactory(seed=7).unique_id()

    def test_many(self):
        """Test that many calls the generator count times."""
        calls = []
        assert TestDataFactory.many(lambda: calls.append(1) or len(calls), 3) == [1, 2, 3]
        assert TestDataFactory.many(lambda: 0, 0) == []

    def test_is_test_data(self):
        """Test the prefix check used to find leftovers."""
        assert TestDataFactory.is_test_data("test-Deck comet")
        assert not TestDataFactory.is_test_data("Biology")
        assert TestDataFactory.is_test_data(TestDataFactory().user().email)
