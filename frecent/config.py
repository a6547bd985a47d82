"""
Frecent Settings - TOML configuration with defaults.

Settings are read from ~/.config/frecent/settings.toml, or from the file
named by the FRECENT_SETTINGS environment variable. Values in the file
override the defaults section by section.

Example settings.toml:
    [catalog]
    db_path = "~/.local/share/frecent/apps.db"
    half_life_days = 3.0

    [search]
    max_results = 5
    fuzzy_threshold = 60
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml
from loguru import logger

from .errors import ConfigInvalid
from .search.matcher import RapidFuzzMatcher
from .services.frecency import validate_half_life

SECONDS_PER_DAY = 24 * 60 * 60

DEFAULT_SETTINGS = {
    "catalog": {
        "db_path": "~/.local/share/frecent/apps.db",
        "half_life_days": 3.0,
    },
    "search": {
        "max_results": 5,
        "fuzzy_threshold": 60,
    },
}


def default_settings_path() -> Path:
    override = os.environ.get("FRECENT_SETTINGS")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "frecent" / "settings.toml"


def load_settings(settings_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load settings from a TOML file.

    Args:
        settings_path: File to read; defaults to default_settings_path()

    Returns:
        Dictionary containing settings with defaults applied

    A missing or unreadable file is not an error: the defaults are used.
    """
    settings_path = Path(settings_path) if settings_path else default_settings_path()

    if not settings_path.exists():
        logger.debug(f"Settings file not found at {settings_path}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    try:
        loaded = toml.load(settings_path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Could not load settings from {settings_path}: {e}. Using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    return _deep_merge(copy.deepcopy(DEFAULT_SETTINGS), loaded)


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary with defaults
        override: Dictionary with overrides

    Returns:
        Merged dictionary (override takes precedence)
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def half_life_seconds(settings: Dict[str, Any]) -> float:
    """
    Catalog half-life in seconds.

    Raises:
        ConfigInvalid: If half_life_days is not a positive number
    """
    days = settings["catalog"]["half_life_days"]
    if isinstance(days, bool) or not isinstance(days, (int, float)):
        raise ConfigInvalid(f"catalog.half_life_days must be a number, got {days!r}")
    return validate_half_life(days * SECONDS_PER_DAY)


def database_path(settings: Dict[str, Any]) -> Path:
    """Location of the catalog file with ~ expanded."""
    return Path(settings["catalog"]["db_path"]).expanduser()


def search_limit(settings: Dict[str, Any]) -> Optional[int]:
    """Maximum number of ranked results, or None for no limit."""
    limit = settings["search"]["max_results"]
    if limit is None or limit == 0:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ConfigInvalid(f"search.max_results must be a non-negative integer, got {limit!r}")
    return limit


def build_matcher(settings: Dict[str, Any]) -> RapidFuzzMatcher:
    """Fuzzy matcher using the configured score threshold."""
    threshold = settings["search"]["fuzzy_threshold"]
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 100:
        raise ConfigInvalid(f"search.fuzzy_threshold must be between 0 and 100, got {threshold!r}")
    return RapidFuzzMatcher(threshold=threshold)
