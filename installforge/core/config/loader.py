"""
Configuration loader — reads installforge.yml into ``Settings``.

Settings are resolved in precedence order:
    environment variables  >  installforge.yml  >  built-in defaults

The file is optional; it is searched for upward from the working
directory so commands work from any subdirectory of a workspace.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "installforge.yml"

# Environment variable → settings field
_ENV_OVERRIDES = {
    "INSTALLFORGE_DATA_ROOT": "data_root",
    "PORT": "port",
    "INSTALLFORGE_LOG_LEVEL": "log_level",
    "INSTALLFORGE_LOG_FILE": "log_file",
}


class ConfigError(Exception):
    """Raised when the settings file is invalid."""


class Settings(BaseModel):
    """Runtime settings for the CLI and web server."""

    data_root: Path = Path("data/projects")
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "WARNING"
    log_file: str | None = None


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for installforge.yml starting from ``start_dir``, walking up.

    Returns:
        Path to the file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, env: dict[str, str] | None = None) -> Settings:
    """Load settings from file and environment.

    Args:
        path: Explicit settings file.  If None, searches upward from cwd;
            a missing file just means defaults.
        env: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    env = os.environ if env is None else env
    data: dict = {}

    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    config_path = path or find_settings_file()
    if config_path is not None:
        logger.debug("Loading settings from %s", config_path)
        try:
            raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if raw is not None and not isinstance(raw, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {config_path}, got {type(raw).__name__}"
            )
        data.update(raw or {})

    for var, key in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[key] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    if config_path is not None and not settings.data_root.is_absolute():
        # Relative data roots are anchored at the settings file
        settings.data_root = config_path.parent / settings.data_root

    logger.debug("Settings: data_root=%s port=%d", settings.data_root, settings.port)
    return settings
