"""Tests for ApiSeeder and the seed helpers."""

import json
import re

import httpx
import pytest

from qaharness.api.client import ApiClient
from qaharness.concurrency.retry import RetryPolicy
from qaharness.data import (
    ApiSeeder,
    NewCard,
    seed_empty_deck,
    seed_large_deck,
    seed_study_ready_deck,
    seed_test_deck,
)
from qaharness.isolation import CleanupTracker


class FakeStudyTab:
    """In-memory stand-in for the deck and card endpoints."""

    def __init__(self, decks=None):
        self.decks = {deck["id"]: deck for deck in (decks or [])}
        self.cards = {}
        self.requests = []
        self.fail_deletes = set()

    def __call__(self, request):
        path = request.url.path.removeprefix("/api")
        self.requests.append((request.method, path))
        body = json.loads(request.content) if request.content else None

        if request.method == "POST" and path == "/v1/decks":
            deck = {"id": f"d{len(self.decks) + 1}", **body}
            self.decks[deck["id"]] = deck
            return httpx.Response(201, json={"success": True, "data": deck})
        if request.method == "POST" and path == "/v1/cards":
            card = {"id": f"c{len(self.cards) + 1}", **body}
            self.cards[card["id"]] = card
            return httpx.Response(201, json={"success": True, "data": card})
        if request.method == "GET" and path == "/v1/decks":
            return httpx.Response(200, json={"success": True, "data": list(self.decks.values())})
        if request.method == "DELETE":
            if path in self.fail_deletes:
                return httpx.Response(409, json={"success": False, "error": {"message": "Deck is locked"}})
            kind, _, resource_id = path.removeprefix("/v1/").partition("/")
            store = self.decks if kind == "decks" else self.cards
            store.pop(resource_id, None)
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture
def server():
    return FakeStudyTab()


@pytest.fixture
def api(server):
    return ApiClient(
        "https://studytab.test/api",
        client=httpx.AsyncClient(transport=httpx.MockTransport(server)),
        retry_policy=RetryPolicy(max_retries=0),
    )


class TestApiSeeder:
    """Tests for creating and deleting seeded data."""

    @pytest.mark.asyncio
    async def test_create_deck_prefixes_name(self, server, api):
        """Test that deck names get a unique test prefix and a default description."""
        seeder = ApiSeeder(api)

        deck = await seeder.create_deck("Biology")

        assert re.fullmatch(r"test-Biology-\d{13}-[0-9a-f]{6}", deck.name)
        assert server.decks[deck.id]["description"].startswith("Test deck created at ")
        assert seeder.get_created_deck_ids() == [deck.id]

    @pytest.mark.asyncio
    async def test_prefixed_name_kept(self, api):
        """Test that names already carrying the prefix are used as given."""
        deck = await ApiSeeder(api).create_deck("test-fixed", description="Fixed")
        assert deck.name == "test-fixed"

    @pytest.mark.asyncio
    async def test_create_deck_with_cards(self, server, api):
        """Test that cards are created in order after their deck."""
        seeder = ApiSeeder(api)

        seeded = await seeder.create_deck_with_cards(
            "Chemistry",
            [{"front": "H2O?", "back": "Water"}, NewCard(front="NaCl?", back="Salt", type="cloze")],
        )

        assert seeded.card_ids == ["c1", "c2"]
        assert server.cards["c1"] == {"id": "c1", "deckId": seeded.deck.id, "front": "H2O?", "back": "Water", "type": "basic"}
        assert server.cards["c2"]["type"] == "cloze"
        assert seeder.get_created_card_ids() == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_tracker_deletes_cards_before_deck(self, server, api):
        """Test that seeded resources are tracked and cleaned newest first."""
        tracker = CleanupTracker(retry_delay=0)
        seeder = ApiSeeder(api, tracker=tracker)
        await seeder.create_deck_with_cards("Physics", [{"front": "c?", "back": "Speed of light"}])
        server.requests.clear()

        result = await tracker.cleanup(None, api)

        assert result.cleaned == 2
        assert server.requests == [("DELETE", "/v1/cards/c1"), ("DELETE", "/v1/decks/d1")]
        assert server.decks == {} and server.cards == {}
        assert not tracker.has_failures()

    @pytest.mark.asyncio
    async def test_delete_failure_is_logged_not_raised(self, server, api):
        """Test that a failed deletion keeps the id for a later attempt."""
        seeder = ApiSeeder(api)
        deck = await seeder.create_deck("Locked")
        server.fail_deletes.add(f"/v1/decks/{deck.id}")

        assert await seeder.delete_deck(deck.id) is False
        assert seeder.get_created_deck_ids() == [deck.id]

        server.fail_deletes.clear()
        assert await seeder.delete_deck(deck.id) is True
        assert seeder.get_created_deck_ids() == []

    @pytest.mark.asyncio
    async def test_delete_card(self, server, api):
        """Test that a deleted card is forgotten."""
        seeder = ApiSeeder(api)
        deck = await seeder.create_deck("Cards")
        card_id = await seeder.create_card(deck.id, {"front": "q", "back": "a"})

        assert await seeder.delete_card(card_id) is True
        assert seeder.get_created_card_ids() == []
        assert server.cards == {}

    @pytest.mark.asyncio
    async def test_cleanup_created_data(self, server, api):
        """Test that cleanup deletes decks only and forgets every id."""
        seeder = ApiSeeder(api)
        await seeder.create_deck_with_cards("One", [{"front": "q", "back": "a"}])
        await seeder.create_deck("Two")
        server.requests.clear()

        await seeder.cleanup_created_data()

        assert server.requests == [("DELETE", "/v1/decks/d1"), ("DELETE", "/v1/decks/d2")]
        assert seeder.get_created_deck_ids() == []
        assert seeder.get_created_card_ids() == []

    @pytest.mark.asyncio
    async def test_delete_test_data_by_prefix(self):
        """Test that only listed decks with the prefix are deleted."""
        server = FakeStudyTab(
            decks=[
                {"id": "a", "name": "test-old-1"},
                {"id": "b", "name": "Biology"},
                {"id": "c", "name": "test-old-2"},
            ]
        )
        api = ApiClient(
            "https://studytab.test/api",
            client=httpx.AsyncClient(transport=httpx.MockTransport(server)),
            retry_policy=RetryPolicy(max_retries=0),
        )

        deleted = await ApiSeeder(api).delete_test_data()

        assert deleted == 2
        assert list(server.decks) == ["b"]


class TestSeedHelpers:
    """Tests for the ready-made seeds."""

    @pytest.mark.asyncio
    async def test_seeds(self, server, api):
        """Test the card counts and names of each seed."""
        seeder = ApiSeeder(api)

        sample = await seed_test_deck(seeder)
        empty = await seed_empty_deck(seeder)
        ready = await seed_study_ready_deck(seeder)
        large = await seed_large_deck(seeder, card_count=7)

        assert len(sample.card_ids) == 5
        assert empty.card_ids == []
        assert len(ready.card_ids) == 3
        assert len(large.card_ids) == 7
        assert sample.deck.name.startswith("test-sample-deck-")
        assert server.decks[large.deck.id]["description"] == "Large test deck with 7 cards for performance testing"
        assert server.cards[large.card_ids[-1]]["front"] == "Question 7: What is the answer to question 7?"
