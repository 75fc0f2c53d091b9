import pytest

from qaharness.config.environment import Environment
from qaharness.isolation.user_pool import reset_user_pool

pytest_plugins = ["pytester", "qaharness.pytest_plugin"]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point the settings files at an empty directory and drop cached config."""
    monkeypatch.setenv("QAHARNESS_CONFIG_DIR", str(tmp_path / "config"))
    for key in (
        "API_BASE_URL",
        "USER_POOL_SIZE",
        "USER_POOL_EMAIL_PATTERN",
        "USER_POOL_PASSWORD",
        "CLEANUP_MAX_ATTEMPTS",
        "CLEANUP_RETRY_DELAY",
        "QAHARNESS_STRICT_CLEANUP",
        "CONTRACT_VALIDATION_MODE",
    ):
        monkeypatch.delenv(key, raising=False)
    Environment.reset()
    yield
    Environment.reset()
    reset_user_pool()
