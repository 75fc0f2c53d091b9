"""
pytest fixtures for isolated test users, automatic resource cleanup, seeded
test data and contract validation.

Loaded automatically through the ``pytest11`` entry point once the package is
installed.

Example:
    async def test_create_deck(isolated_user, api_client, cleanup_tracker):
        deck = await api_client.post("/decks", {"name": "Biology"})
        cleanup_tracker.track(
            TrackedResource.api("deck", deck["id"], f"/decks/{deck['id']}", project="studytab")
        )
"""

import os
import re

import pytest
import pytest_asyncio

from qaharness.api.client import ApiClient
from qaharness.config.environment import Environment
from qaharness.config.logging_config import get_logger
from qaharness.contracts.validator import ContractValidator
from qaharness.data.factory import TestDataFactory
from qaharness.data.seeder import ApiSeeder
from qaharness.errors import PoolExhaustedError
from qaharness.isolation.cleanup_tracker import CleanupTracker
from qaharness.isolation.user_pool import (
    UserPoolConfig,
    get_user_pool,
    reset_user_pool,
)

log = get_logger(__name__)


def parse_worker_id(worker: str | None) -> int:
    """Map a pytest-xdist worker name (``gw3``) to its index; 0 outside xdist."""
    if not worker:
        return 0
    match = re.search(r"(\d+)$", worker)
    return int(match.group(1)) if match else 0


@pytest.fixture(scope="session")
def worker_id() -> int:
    return parse_worker_id(os.environ.get("PYTEST_XDIST_WORKER"))


@pytest.fixture(scope="session")
def user_pool():
    pool = get_user_pool(UserPoolConfig.from_environment())
    yield pool
    reset_user_pool()


@pytest.fixture
def isolated_user(user_pool, worker_id):
    user = user_pool.acquire(worker_id)
    if user is None:
        raise PoolExhaustedError(worker_id)
    yield user
    user_pool.release(user.id)


@pytest_asyncio.fixture
async def api_client():
    async with ApiClient.from_environment() as client:
        yield client


@pytest_asyncio.fixture
async def cleanup_tracker(request, api_client):
    tracker = CleanupTracker.from_environment()
    yield tracker

    page = request.getfixturevalue("page") if "page" in request.fixturenames else None
    await tracker.cleanup(page, api_client)

    if tracker.has_failures():
        report = tracker.get_failure_report()
        log.warning(report)
        if Environment.is_strict_cleanup():
            pytest.fail(report, pytrace=False)


@pytest.fixture
def data_factory():
    return TestDataFactory()


@pytest.fixture
def contract_validator():
    validator = ContractValidator(mode=Environment.get_contract_validation_mode())
    yield validator
    stats = validator.get_stats()
    if stats.total:
        log.debug(f"Contract validations: {stats.passed}/{stats.total} passed ({stats.pass_rate:.0f}%)")


@pytest.fixture
def api_seeder(api_client, cleanup_tracker):
    return ApiSeeder(api_client, tracker=cleanup_tracker)
