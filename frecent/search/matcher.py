"""
Fuzzy matching capability used by Catalog.rank().

A matcher is any callable taking (haystack, needle) and returning either
None (no match) or a non-negative integer relevance score. The catalog
treats it as an opaque primitive, so tests can pass a deterministic stub.
"""

from typing import Callable, Optional

from rapidfuzz import fuzz, utils

FuzzyMatch = Callable[[str, str], Optional[int]]


class RapidFuzzMatcher:
    """Typo-tolerant matching using rapidfuzz's weighted ratio."""

    def __init__(self, threshold: int = 60, scorer=fuzz.WRatio):
        self.threshold = threshold
        self.scorer = scorer

    def __call__(self, haystack: str, needle: str) -> Optional[int]:
        if not needle or not needle.strip():
            return None

        # Match against the name only, case-insensitively
        score = self.scorer(
            needle,
            haystack,
            processor=utils.default_process,
            score_cutoff=self.threshold,
        )
        if not score:
            return None
        return int(score)

    def __repr__(self) -> str:
        return f"RapidFuzzMatcher(threshold={self.threshold})"
