"""
Tests for the background catalog worker.

Runs a real worker thread; requests are queued before start() where the
test depends on how they are batched.
"""

import queue
from unittest.mock import MagicMock

import pytest

from conftest import FakeClock, make_entry
from frecent.config import load_settings
from frecent.errors import EntryNotFound, LaunchFailed, ScoreOverflow
from frecent.services.catalog import Catalog
from frecent.services.storage import load_catalog
from frecent.services.worker import (
    CatalogWorker,
    HideSignal,
    RankedResults,
    WorkerFailure,
)

TIMEOUT = 5


def _drain(worker):
    messages = []
    while True:
        try:
            messages.append(worker.outbox.get_nowait())
        except queue.Empty:
            return messages


@pytest.fixture
def worker(catalog, db_path):
    worker = CatalogWorker(catalog, db_path, runner=MagicMock())
    yield worker
    if worker.is_alive:
        worker.stop(TIMEOUT)


class TestSearch:
    """Test query handling."""

    def test_search_returns_ranked_results(self, worker):
        worker.start()
        worker.search("fi")
        message = worker.outbox.get(timeout=TIMEOUT)
        assert isinstance(message, RankedResults)
        assert message.query == "fi"
        assert [e.display_name for e in message.entries] == ["Firefox", "Files"]

    def test_queued_searches_collapse_to_latest(self, worker):
        for text in ("f", "fi", "t"):
            worker.search(text)
        worker.start()
        worker.stop(TIMEOUT)

        messages = _drain(worker)
        assert [m.query for m in messages] == ["t"]

    def test_max_results_truncates(self, catalog, db_path):
        worker = CatalogWorker(catalog, db_path, runner=MagicMock(), max_results=1)
        worker.search("")
        worker.start()
        worker.stop(TIMEOUT)
        (message,) = _drain(worker)
        assert len(message.entries) == 1


class TestLaunch:
    """Test launch handling."""

    def test_launch_top_result_then_hide(self, worker, catalog, db_path):
        worker.search("term")
        worker.launch()
        worker.start()
        worker.join(TIMEOUT)

        messages = _drain(worker)
        assert isinstance(messages[0], RankedResults)
        assert isinstance(messages[-1], HideSignal)
        assert not worker.is_alive
        worker.runner.assert_called_once_with("gnome-terminal")
        assert load_catalog(db_path).entries[2].score == 1.0

    def test_launch_by_id(self, worker, catalog):
        files = catalog.entries[1]
        worker.launch(files.id)
        worker.start()
        worker.join(TIMEOUT)
        assert files.score == 1.0
        assert isinstance(worker.outbox.get_nowait(), HideSignal)

    def test_launch_without_selection_hides(self, worker):
        worker.launch()
        worker.start()
        worker.join(TIMEOUT)
        assert _drain(worker) == [HideSignal()]
        worker.runner.assert_not_called()

    def test_failed_launch_is_reported_and_worker_continues(self, catalog, db_path):
        runner = MagicMock(side_effect=LaunchFailed("firefox", "boom"))
        worker = CatalogWorker(catalog, db_path, runner=runner)
        worker.search("fire")
        worker.launch()
        worker.search("term")
        worker.start()
        worker.stop(TIMEOUT)

        messages = _drain(worker)
        assert isinstance(messages[1], WorkerFailure)
        assert isinstance(messages[1].error, LaunchFailed)
        assert isinstance(messages[2], RankedResults)
        assert all(e.score == 0.0 for e in catalog.entries)
        assert not db_path.exists()

    def test_unknown_id_is_reported_before_exit(self, worker):
        worker.launch("missing")
        worker.start()
        worker.join(TIMEOUT)

        (message,) = _drain(worker)
        assert isinstance(message, WorkerFailure)
        assert isinstance(message.error, EntryNotFound)
        assert not worker.is_alive
        worker.runner.assert_not_called()

    def test_overflow_after_launch_is_reported_then_hides(self, apps, db_path):
        clock = FakeClock(0.0)
        catalog = Catalog(apps, half_life=3600, clock=clock)
        clock.advance(3600 * 1100)
        worker = CatalogWorker(catalog, db_path, runner=MagicMock())
        worker.launch(apps[0].id)
        worker.start()
        worker.join(TIMEOUT)

        failure, hide = _drain(worker)
        assert isinstance(failure.error, ScoreOverflow)
        assert isinstance(hide, HideSignal)
        assert not worker.is_alive
        worker.runner.assert_called_once_with(apps[0].launch_command)


class TestRescan:
    """Test rescans routed through the worker."""

    def test_rescan_merges_and_saves(self, worker, catalog, db_path):
        scan = [make_entry("Editor")]
        worker.rescan(scan)
        worker.search("")
        worker.start()
        worker.stop(TIMEOUT)

        (message,) = _drain(worker)
        assert [e.display_name for e in message.entries] == ["Editor"]
        assert [e.display_name for e in load_catalog(db_path).entries] == ["Editor"]

    def test_rescan_clears_removed_selection(self, worker):
        worker.search("fire")
        worker.rescan([make_entry("Editor")])
        worker.launch()
        worker.start()
        worker.join(TIMEOUT)

        worker.runner.assert_not_called()
        assert isinstance(_drain(worker)[-1], HideSignal)


class TestLifecycle:
    """Test start/stop ownership."""

    def test_from_settings_opens_configured_catalog(self, tmp_settings, apps):
        worker = CatalogWorker.from_settings(load_settings(tmp_settings), scan=apps)

        assert worker.db_path == tmp_settings.parent / "apps.db"
        assert worker.db_path.exists()
        assert worker.max_results == 10
        assert worker.catalog.matcher.threshold == 70
        assert worker.catalog.half_life == 7 * 24 * 60 * 60
        assert len(worker.catalog) == 3

    def test_from_settings_reads_settings_file(self, tmp_settings, monkeypatch):
        monkeypatch.setenv("FRECENT_SETTINGS", str(tmp_settings))
        worker = CatalogWorker.from_settings()
        worker.start()
        worker.search("")
        assert worker.outbox.get(timeout=TIMEOUT).entries == []
        worker.stop(TIMEOUT)

    def test_stop_ends_thread(self, worker):
        worker.start()
        assert worker.is_alive
        worker.stop(TIMEOUT)
        assert not worker.is_alive

    def test_cannot_start_twice(self, worker):
        worker.start()
        with pytest.raises(RuntimeError):
            worker.start()
