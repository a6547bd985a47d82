"""
Shared test fixtures for the frecent test suite.

Provides catalogs with deterministic matchers and clocks, plus settings
and catalog files that use real file I/O (no mocking of the filesystem).
"""

import pytest
import toml

from frecent.models import Entry
from frecent.services.catalog import Catalog

REFERENCE_TIME = 1_600_000_000.0
HALF_LIFE = 3 * 24 * 60 * 60.0


class FakeClock:
    """Settable clock returning seconds since the epoch."""

    def __init__(self, now: float = REFERENCE_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def table_matcher(scores: dict):
    """Matcher returning fixed relevance scores keyed by display name."""
    def match(haystack, needle):
        return scores.get(haystack)
    return match


def make_entry(name, icon="icon", command=None, score=0.0):
    return Entry(name, icon, command or f"/usr/bin/{name.lower()}", score=score)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def apps():
    """Freshly scanned entries, all unscored."""
    return [
        make_entry("Firefox"),
        make_entry("Files", icon="system-file-manager", command="nautilus --new-window"),
        make_entry("Terminal", icon="utilities-terminal", command="gnome-terminal"),
    ]


@pytest.fixture
def catalog(apps, clock):
    """Catalog over the three apps with a fixed clock and a prefix matcher."""
    def prefix_match(haystack, needle):
        return 10 if haystack.lower().startswith(needle.lower()) else None

    return Catalog(apps, half_life=HALF_LIFE, matcher=prefix_match, clock=clock)


@pytest.fixture
def tmp_settings(tmp_path):
    """Create a real settings TOML file with all sections."""
    settings_path = tmp_path / "settings.toml"
    data = {
        "catalog": {"db_path": str(tmp_path / "apps.db"), "half_life_days": 7},
        "search": {"max_results": 10, "fuzzy_threshold": 70},
    }
    settings_path.write_text(toml.dumps(data))
    return settings_path


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "data" / "apps.db"
