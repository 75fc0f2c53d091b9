import os
from pathlib import Path
from typing import Any, Dict, Optional

from qaharness.config.settings import (
    NOT_GIVEN,
    SETTINGS_FILE,
    get_system_file_path,
    get_value,
    load_settings,
)

DEFAULT_ENV = {
    "ENV": "development",
    "LOG_LEVEL": "INFO",
    "DEBUG": None,
    "API_BASE_URL": "http://localhost:3000/api",
    "USER_POOL_SIZE": "10",
    "USER_POOL_EMAIL_PATTERN": "testuser{n}@example.com",
    "USER_POOL_PASSWORD": "Test123!",
    "CLEANUP_MAX_ATTEMPTS": "3",
    "CLEANUP_RETRY_DELAY": "1.0",
    "QAHARNESS_STRICT_CLEANUP": "0",
    "CONTRACT_VALIDATION_MODE": "strict",
}

_FALSY = ("0", "false", "no", "off", "")

"""
Environment Configuration Management Module

Centralised configuration for the harness. Values are resolved from:

- Settings and secrets files (settings.yaml / secrets.yaml)
- Environment variables, including .env files for the current ENV
- The defaults in DEFAULT_ENV

Typed accessors fall back to the default when a value cannot be parsed, so a
malformed environment never aborts a test session at import time.
"""


def load_dotenv_files():
    """Load environment variables from .env files based on current environment."""
    from dotenv import load_dotenv

    project_root = Path.cwd()
    env_name = os.environ.get("ENV", "development")

    # later files override earlier ones
    env_files = [
        project_root / ".env",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


class Environment(object):
    """
    Manages harness configuration and provides default values and type conversions.

    All accessors are class methods; the loaded settings are cached on the class
    until ``reset()`` is called.
    """

    settings: Optional[Dict[str, Any]] = None
    secrets: Optional[Dict[str, Any]] = None

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings, cls.secrets = load_settings()

    @classmethod
    def reset(cls):
        """Drop cached settings so the next access reloads them."""
        cls.settings = None
        cls.secrets = None

    @classmethod
    def get(cls, key: str, default: Any = NOT_GIVEN):
        if cls.settings is None or cls.secrets is None:
            cls.load_settings()
        assert cls.settings is not None and cls.secrets is not None
        return get_value(key, cls.settings, cls.secrets, DEFAULT_ENV, default)

    @classmethod
    def has_settings(cls):
        return get_system_file_path(SETTINGS_FILE).exists()

    @classmethod
    def _get_int_setting(cls, key: str, default: int) -> int:
        raw = cls.get(key, default)
        try:
            return int(raw)
        except (TypeError, ValueError):
            return default

    @classmethod
    def _get_float_setting(cls, key: str, default: float) -> float:
        raw = cls.get(key, default)
        try:
            return float(raw)
        except (TypeError, ValueError):
            return default

    @classmethod
    def get_api_base_url(cls) -> str:
        """
        Base URL of the application API, without a trailing slash.
        """
        return str(cls.get("API_BASE_URL")).rstrip("/")

    @classmethod
    def get_user_pool_size(cls) -> int:
        return cls._get_int_setting("USER_POOL_SIZE", 10)

    @classmethod
    def get_user_pool_email_pattern(cls) -> str:
        return str(cls.get("USER_POOL_EMAIL_PATTERN"))

    @classmethod
    def get_user_pool_password(cls) -> str:
        return str(cls.get("USER_POOL_PASSWORD"))

    @classmethod
    def get_cleanup_max_attempts(cls) -> int:
        return cls._get_int_setting("CLEANUP_MAX_ATTEMPTS", 3)

    @classmethod
    def get_cleanup_retry_delay(cls) -> float:
        return cls._get_float_setting("CLEANUP_RETRY_DELAY", 1.0)

    @classmethod
    def is_strict_cleanup(cls) -> bool:
        """
        Should unresolved cleanup failures fail the test that produced them?
        """
        value = cls.get("QAHARNESS_STRICT_CLEANUP", "0")
        return str(value).lower() not in _FALSY

    @classmethod
    def get_contract_validation_mode(cls) -> str:
        """
        "strict" or "lenient"; anything else falls back to "strict".
        """
        mode = str(cls.get("CONTRACT_VALIDATION_MODE")).lower()
        return mode if mode in ("strict", "lenient") else "strict"

    @classmethod
    def get_log_level(cls):
        """Return desired log level string.

        Priority:
        1) LOG_LEVEL env
        2) If DEBUG env is truthy, return "DEBUG"
        3) QAHARNESS_LOG_LEVEL env (default "INFO")
        """
        level = os.getenv("LOG_LEVEL")
        if level:
            return str(level).upper()
        debug_env = os.getenv("DEBUG")
        if debug_env and debug_env.lower() not in _FALSY:
            return "DEBUG"
        return os.getenv("QAHARNESS_LOG_LEVEL", "INFO").upper()
