# Frecent Services Package
"""
Backend services for the frecent launcher core.

Services handle frecency scoring, the catalog, and its persistence.
The background worker lives in services.worker.
"""

from .catalog import Catalog, MergeReport
from .frecency import DEFAULT_HALF_LIFE, decayed_score, reinforce, undecay
from .storage import dumps, load_catalog, loads, open_catalog, save_catalog

__all__ = [
    "Catalog",
    "MergeReport",
    "DEFAULT_HALF_LIFE",
    "decayed_score",
    "reinforce",
    "undecay",
    "dumps",
    "loads",
    "load_catalog",
    "save_catalog",
    "open_catalog",
]
