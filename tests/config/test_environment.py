import logging

import yaml

from qaharness.config.environment import DEFAULT_ENV, Environment
from qaharness.config.logging_config import get_logger
from qaharness.config.settings import get_system_file_path, load_settings, save_settings


class TestEnvironment:
    def test_defaults(self):
        assert Environment.get_api_base_url() == "http://localhost:3000/api"
        assert Environment.get_user_pool_size() == 10
        assert Environment.get_user_pool_email_pattern() == "testuser{n}@example.com"
        assert Environment.get_user_pool_password() == "Test123!"
        assert Environment.get_cleanup_max_attempts() == 3
        assert Environment.get_cleanup_retry_delay() == 1.0
        assert Environment.is_strict_cleanup() is False

    def test_environment_variables_override_defaults(self, monkeypatch):
        monkeypatch.setenv("USER_POOL_SIZE", "4")
        monkeypatch.setenv("CLEANUP_RETRY_DELAY", "0.5")
        monkeypatch.setenv("QAHARNESS_STRICT_CLEANUP", "true")

        assert Environment.get_user_pool_size() == 4
        assert Environment.get_cleanup_retry_delay() == 0.5
        assert Environment.is_strict_cleanup() is True

    def test_malformed_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("USER_POOL_SIZE", "lots")
        monkeypatch.setenv("CLEANUP_RETRY_DELAY", "soon")

        assert Environment.get_user_pool_size() == 10
        assert Environment.get_cleanup_retry_delay() == 1.0

    def test_settings_file_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "http://from-env/api")
        save_settings({"API_BASE_URL": "https://staging.studytab.test/api/"}, {"USER_POOL_PASSWORD": "vault"})
        Environment.reset()

        assert Environment.get_api_base_url() == "https://staging.studytab.test/api"
        assert Environment.get_user_pool_password() == "vault"
        assert Environment.has_settings()

    def test_settings_round_trip(self):
        save_settings({"USER_POOL_SIZE": 6}, {})

        settings, secrets = load_settings()
        assert settings == {"USER_POOL_SIZE": 6}
        assert secrets == {}
        with open(get_system_file_path("settings.yaml")) as f:
            assert yaml.safe_load(f) == {"USER_POOL_SIZE": 6}

    def test_missing_key_uses_default_argument(self):
        assert "NOT_A_SETTING" not in DEFAULT_ENV
        assert Environment.get("NOT_A_SETTING", "fallback") == "fallback"

    def test_log_level(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("DEBUG", "1")
        assert Environment.get_log_level() == "DEBUG"

        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert Environment.get_log_level() == "WARNING"

    def test_contract_validation_mode(self, monkeypatch):
        assert Environment.get_contract_validation_mode() == "strict"

        monkeypatch.setenv("CONTRACT_VALIDATION_MODE", "LENIENT")
        Environment.reset()
        assert Environment.get_contract_validation_mode() == "lenient"

        monkeypatch.setenv("CONTRACT_VALIDATION_MODE", "relaxed")
        Environment.reset()
        assert Environment.get_contract_validation_mode() == "strict"


def test_get_logger_returns_named_logger():
    logger = get_logger("qaharness.tests")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "qaharness.tests"
