"""
Catalog - The owning collection of launcher entries and their scores.

Ranking combines two signals into one scalar:
  combined_score = entry.score + fuzzy_relevance

Entries whose fuzzy relevance is None or 0 are dropped before sorting.
Equal combined scores keep catalog order, which is the order entries were
scanned or merged in.

The catalog does no locking. A single owner (see services.worker) is
expected to serialize queries, launches and rescans.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

from loguru import logger

from ..errors import EntryNotFound
from ..models import Entry
from ..search.matcher import FuzzyMatch, RapidFuzzMatcher
from .frecency import (
    DEFAULT_HALF_LIFE,
    current_time_secs,
    decayed_score,
    reinforce,
    validate_half_life,
    validate_score,
)


@dataclass
class MergeReport:
    """Entries added and removed by Catalog.merge()."""
    added: list[Entry] = field(default_factory=list)
    removed: list[Entry] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class Catalog:
    """
    Scored collection of launchable entries.

    Args:
        entries: Initial entries; later duplicates of a content_key are dropped
        reference_time: Decay epoch in seconds; defaults to the current time
        half_life: Decay half-life in seconds
        matcher: Fuzzy-match callable used by rank()
        clock: Returns the current time in seconds (used by record_launch)

    Raises:
        ConfigInvalid: If half_life is not a positive finite number, or an
            entry score is negative or not finite
    """

    def __init__(
        self,
        entries: Iterable[Entry] = (),
        reference_time: Optional[float] = None,
        half_life: float = DEFAULT_HALF_LIFE,
        matcher: Optional[FuzzyMatch] = None,
        clock: Callable[[], float] = current_time_secs,
    ):
        self._half_life = validate_half_life(half_life)
        self._clock = clock
        self._reference_time = float(clock() if reference_time is None else reference_time)
        self.matcher = matcher if matcher is not None else RapidFuzzMatcher()

        self.entries: list[Entry] = []
        seen = set()
        for entry in entries:
            if entry.content_key in seen:
                logger.debug(f"Skipping duplicate entry {entry}")
                continue
            validate_score(entry.score)
            seen.add(entry.content_key)
            self.entries.append(entry)

    @property
    def reference_time(self) -> float:
        """Fixed epoch that all decay calculations are measured from."""
        return self._reference_time

    @property
    def half_life(self) -> float:
        return self._half_life

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Catalog):
            return NotImplemented
        return (
            self.entries == other.entries
            and self._reference_time == other._reference_time
            and self._half_life == other._half_life
        )

    def __repr__(self) -> str:
        return (
            f"Catalog({len(self.entries)} entries, "
            f"reference_time={self._reference_time}, half_life={self._half_life})"
        )

    def secs_elapsed(self) -> float:
        """Seconds elapsed since the reference time."""
        return self._clock() - self._reference_time

    def get(self, entry_id: str) -> Entry:
        """
        Find the live entry with the given id.

        Raises:
            EntryNotFound: If no entry has that id
        """
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(entry_id)

    def rank(self, query: str, limit: Optional[int] = None) -> list[Entry]:
        """
        Get entries in rank order for a search string.

        An empty or whitespace-only query matches every entry and orders
        them by usage score alone; the matcher is not consulted.

        Args:
            query: Text typed by the user
            limit: Maximum number of results, applied after sorting

        Returns:
            Copies of the matching entries, best first
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must not be negative, got {limit}")

        if not query or not query.strip():
            ranked = [(entry, float(entry.score)) for entry in self.entries]
        else:
            ranked = []
            for entry in self.entries:
                relevance = self.matcher(entry.display_name, query)
                if relevance is None or relevance <= 0:
                    continue
                ranked.append((entry, float(entry.score) + float(relevance)))

        # list.sort is stable, so ties keep catalog order
        ranked.sort(key=lambda pair: pair[1], reverse=True)

        if limit is not None:
            ranked = ranked[:limit]

        return [entry.copy() for entry, _score in ranked]

    def frecency(self, entry: Entry) -> float:
        """Present-day value of an entry's stored score."""
        return decayed_score(entry.score, self.secs_elapsed(), self._half_life)

    def top_entries(self, limit: int = 12) -> list[Entry]:
        """
        Get the most used entries by present-day frecency.

        Entries that were never launched are left out.

        Args:
            limit: Maximum number of entries to return

        Returns:
            Copies of the entries, highest frecency first
        """
        used = [entry for entry in self.entries if entry.score > 0]
        # Every entry decays by the same factor, so stored order is present-day order
        used.sort(key=lambda entry: entry.score, reverse=True)
        return [entry.copy() for entry in used[:limit]]

    def record_launch(self, entry_id: str, weight: float = 1.0) -> None:
        """
        Increment the score for an entry by one launch.

        Args:
            entry_id: Id of an entry previously returned by this catalog
            weight: Launch weight added to the present-day score

        Raises:
            EntryNotFound: If the id is not in the catalog
            ScoreOverflow: If the catalog is too far past its reference time
        """
        entry = self.get(entry_id)
        reinforce(entry, weight, self.secs_elapsed(), self._half_life)
        logger.debug(f"Recorded launch for {entry.display_name}")

    def merge(self, rescanned: Iterable[Entry]) -> MergeReport:
        """
        Merge the entries from a rescan into the catalog.

        * Entries not in `rescanned` are removed
        * Entries in `rescanned` that are new are added as copies with a zero score
        * Entries in both keep the existing instance, id and score

        Args:
            rescanned: Freshly scanned entries (scores are ignored)

        Returns:
            MergeReport listing what was added and removed
        """
        incoming: dict[tuple[str, str, str], Entry] = {}
        for entry in rescanned:
            incoming.setdefault(entry.content_key, entry)

        kept = []
        report = MergeReport()
        for entry in self.entries:
            if entry.content_key in incoming:
                kept.append(entry)
            else:
                report.removed.append(entry)

        kept_keys = {entry.content_key for entry in kept}
        for key, entry in incoming.items():
            if key not in kept_keys:
                added = replace(entry, score=0.0)
                kept.append(added)
                report.added.append(added)

        self.entries = kept

        if report.changed:
            logger.info(
                f"Merged rescan: {len(report.added)} added, "
                f"{len(report.removed)} removed, {len(self.entries)} total"
            )
        return report
