"""
Catalog Worker - Runs ranking and launches off the interactive thread.

The front-end talks to the worker through two one-way queues:

  inbound:  SearchRequest, LaunchRequest, RescanRequest, TerminateRequest
  outbound: RankedResults, HideSignal, WorkerFailure

Requests are handled one at a time in arrival order. Search requests that
pile up while the worker is busy are collapsed to the newest one, so at
most one result list is in flight for the latest query. A launch blocks
the worker until the command has started and the catalog has been saved.

The worker is owned by whoever created it; stop() or join() ends it.
Launching an id the catalog does not contain reports WorkerFailure and
ends the worker without a HideSignal.
"""

import queue
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from .. import config
from ..errors import CatalogError, EntryNotFound, LaunchFailed
from ..models import Entry
from ..utils.helpers import launch_entry, run_command
from .catalog import Catalog
from .storage import open_catalog, save_catalog


@dataclass(frozen=True)
class SearchRequest:
    text: str


@dataclass(frozen=True)
class LaunchRequest:
    """Launch an entry; None means the top result of the latest search."""
    entry_id: Optional[str] = None


@dataclass(frozen=True)
class RescanRequest:
    entries: list[Entry] = field(default_factory=list)


@dataclass(frozen=True)
class TerminateRequest:
    pass


@dataclass(frozen=True)
class RankedResults:
    query: str
    entries: list[Entry]


@dataclass(frozen=True)
class HideSignal:
    pass


@dataclass(frozen=True)
class WorkerFailure:
    error: CatalogError


class CatalogWorker:
    """
    Single owner of a Catalog, serving requests on a background thread.

    Args:
        catalog: Catalog to query and update
        db_path: Catalog file written after every launch and rescan
        runner: Callable that starts a launch command
        max_results: Truncate ranked results to this many entries
    """

    def __init__(
        self,
        catalog: Catalog,
        db_path: Path | str,
        runner: Callable[[str], object] = run_command,
        max_results: Optional[int] = None,
    ):
        self.catalog = catalog
        self.db_path = Path(db_path)
        self.runner = runner
        self.max_results = max_results

        self.outbox: queue.Queue = queue.Queue()
        self._inbox: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._selected: Optional[Entry] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[dict] = None,
        scan: Optional[list[Entry]] = None,
        runner: Callable[[str], object] = run_command,
    ) -> "CatalogWorker":
        """
        Open the configured catalog and build a worker for it.

        Args:
            settings: Loaded settings; read from the settings file when None
            scan: Fresh scanner output merged into the catalog, if any
            runner: Callable that starts a launch command

        Raises:
            ConfigInvalid: If a setting is out of range
            StorageError: If the catalog file cannot be opened or written
        """
        if settings is None:
            settings = config.load_settings()

        db_path = config.database_path(settings)
        catalog = open_catalog(
            db_path,
            scan=scan,
            half_life=config.half_life_seconds(settings),
            matcher=config.build_matcher(settings),
        )
        return cls(catalog, db_path, runner=runner, max_results=config.search_limit(settings))

    # Owner-side API

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("worker already started")
        self._thread = threading.Thread(target=self._run, name="frecent-worker", daemon=True)
        self._thread.start()

    def submit(self, request) -> None:
        self._inbox.put(request)

    def search(self, text: str) -> None:
        self.submit(SearchRequest(text))

    def launch(self, entry_id: Optional[str] = None) -> None:
        self.submit(LaunchRequest(entry_id))

    def rescan(self, entries: list[Entry]) -> None:
        self.submit(RescanRequest(list(entries)))

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the worker to exit and wait for it."""
        self.submit(TerminateRequest())
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # Worker thread

    def _next_search(self, request: SearchRequest):
        """Skip to the newest queued search; return it and any request behind it."""
        while True:
            try:
                following = self._inbox.get_nowait()
            except queue.Empty:
                return request, None
            if not isinstance(following, SearchRequest):
                return request, following
            request = following

    def _run(self) -> None:
        logger.debug("Catalog worker started")
        pending = None
        while True:
            request = pending if pending is not None else self._inbox.get()
            pending = None

            if isinstance(request, SearchRequest):
                request, pending = self._next_search(request)
                self._handle_search(request)
            elif isinstance(request, LaunchRequest):
                if self._handle_launch(request):
                    break
            elif isinstance(request, RescanRequest):
                self._handle_rescan(request)
            elif isinstance(request, TerminateRequest):
                break
            else:
                logger.warning(f"Ignoring unknown worker request: {request!r}")
        logger.debug("Catalog worker stopped")

    def _handle_search(self, request: SearchRequest) -> None:
        entries = self.catalog.rank(request.text, self.max_results)
        self._selected = entries[0] if entries else None
        self.outbox.put(RankedResults(request.text, entries))

    def _handle_launch(self, request: LaunchRequest) -> bool:
        """Launch the requested entry. Returns True when the worker should exit."""
        entry_id = request.entry_id
        if entry_id is None and self._selected is not None:
            entry_id = self._selected.id

        if entry_id is None:
            self.outbox.put(HideSignal())
            return True

        try:
            launch_entry(self.catalog, entry_id, self.db_path, runner=self.runner)
        except LaunchFailed as e:
            self.outbox.put(WorkerFailure(e))
            return False
        except EntryNotFound as e:
            # Removed by a rescan after it was handed out
            logger.error(f"Cannot launch: {e}")
            self.outbox.put(WorkerFailure(e))
            return True
        except CatalogError as e:
            # Launched, but recording or saving failed
            logger.error(f"Launch bookkeeping failed: {e}")
            self.outbox.put(WorkerFailure(e))

        self.outbox.put(HideSignal())
        return True

    def _handle_rescan(self, request: RescanRequest) -> None:
        report = self.catalog.merge(request.entries)
        if self._selected is not None and any(e.id == self._selected.id for e in report.removed):
            self._selected = None
        if report.changed:
            try:
                save_catalog(self.catalog, self.db_path)
            except CatalogError as e:
                self.outbox.put(WorkerFailure(e))
