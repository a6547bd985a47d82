"""
Search package - Fuzzy matching used to rank catalog entries.

Provides the matcher contract and the default rapidfuzz-backed matcher.
"""

from .matcher import FuzzyMatch, RapidFuzzMatcher

__all__ = ["FuzzyMatch", "RapidFuzzMatcher"]
