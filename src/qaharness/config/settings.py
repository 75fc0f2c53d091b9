"""
Settings file helpers.

Settings and secrets live in two YAML files under the per-user configuration
directory. Values found there take precedence over environment variables,
which in turn take precedence over the defaults declared in
``qaharness.config.environment.DEFAULT_ENV``.
"""

import os
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

SETTINGS_FILE = "settings.yaml"
SECRETS_FILE = "secrets.yaml"

MISSING_MESSAGE = "Missing required configuration value {0}. Set it in settings.yaml or as an environment variable."

NOT_GIVEN = object()


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_system_file_path(filename: str) -> Path:
    """Return the path to the configuration file for the current OS."""
    import platform

    override = os.getenv("QAHARNESS_CONFIG_DIR")
    if override:
        return Path(override) / filename

    os_name = platform.system()
    if os_name in {"Linux", "Darwin"}:
        return Path.home() / ".config" / "qaharness" / filename
    elif os_name == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / "qaharness" / filename
        return Path("data") / filename
    return Path("data") / filename


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------


def load_settings() -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Load settings and secrets from YAML files."""
    settings_file = get_system_file_path(SETTINGS_FILE)
    secrets_file = get_system_file_path(SECRETS_FILE)

    settings: Dict[str, Any] = {}
    secrets: Dict[str, Any] = {}

    if settings_file.exists():
        with open(settings_file, "r") as f:
            settings = yaml.safe_load(f) or {}

    if secrets_file.exists():
        with open(secrets_file, "r") as f:
            secrets = yaml.safe_load(f) or {}

    return settings, secrets


def save_settings(settings: Dict[str, Any], secrets: Dict[str, Any]) -> None:
    """Save settings and secrets to their respective YAML files."""
    settings_file = get_system_file_path(SETTINGS_FILE)
    secrets_file = get_system_file_path(SECRETS_FILE)

    os.makedirs(os.path.dirname(settings_file), exist_ok=True)
    os.makedirs(os.path.dirname(secrets_file), exist_ok=True)

    with open(settings_file, "w") as f:
        yaml.dump(settings, f)

    with open(secrets_file, "w") as f:
        yaml.dump(secrets, f)


def get_value(
    key: str,
    settings: Dict[str, Any],
    secrets: Dict[str, Any],
    default_env: Dict[str, Any],
    default: Any = NOT_GIVEN,
) -> Any:
    """Retrieve a configuration value from secrets, settings, or environment."""
    value = secrets.get(key) or settings.get(key)
    if value is None or str(value) == "":
        value = os.environ.get(key)

    if value is None:
        value = default_env.get(key, default)

    if value is not NOT_GIVEN:
        return value
    raise KeyError(MISSING_MESSAGE.format(key))
