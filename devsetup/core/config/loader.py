"""
Reads the optional devsetup.yml into a SetupConfig.

No file means the stock Pico setup: every field of SetupConfig has a
default. A file that exists but does not parse or validate is an
error, never silently ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from devsetup.core.models.config import SetupConfig

logger = logging.getLogger(__name__)

SETUP_CONFIG_FILE = "devsetup.yml"


class ConfigError(Exception):
    """The setup configuration file is unreadable or invalid."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest devsetup.yml in ``start_dir`` (default: cwd) or an ancestor."""
    start = (start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / SETUP_CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def _read_mapping(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    # An empty file means "all defaults"
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_config(path: Path | None = None, *, search: bool = True) -> SetupConfig:
    """Load the setup configuration.

    An explicit ``path`` must exist. Without one, the nearest
    devsetup.yml above the working directory is used when ``search`` is
    set, and the built-in defaults otherwise or when none is found.

    Raises:
        ConfigError: explicit file missing, or the file is unreadable,
            not a YAML mapping, or fails schema validation.
    """
    if path is None and search:
        path = find_config_file()
    if path is None:
        logger.debug("no %s, using built-in defaults", SETUP_CONFIG_FILE)
        return SetupConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    data = _read_mapping(path)
    try:
        config = SetupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid setup configuration in {path}: {e}") from e

    logger.info("Loaded setup config from %s", path)
    return config
