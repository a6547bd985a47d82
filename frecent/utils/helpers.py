"""
Helper utilities for launching catalog entries.

Provides:
- Command spawning detached from the launcher process
- The launch feedback loop (launch, record in frecency, persist)
"""

import shlex
import subprocess
from pathlib import Path
from typing import Callable

from loguru import logger

from ..errors import LaunchFailed
from ..models import Entry
from ..services.catalog import Catalog
from ..services.storage import save_catalog

# Desktop entry Exec field codes, expanded by the launcher to nothing
_FIELD_CODES = {"%f", "%F", "%u", "%U", "%d", "%D", "%n", "%N", "%i", "%c", "%k", "%v", "%m"}


def parse_command(command: str) -> list[str]:
    """
    Split a launch command into an argument vector.

    Args:
        command: Command line, possibly containing desktop entry field codes

    Returns:
        Arguments with field codes removed and "%%" unescaped

    Raises:
        LaunchFailed: If the command is empty or its quoting is unbalanced
    """
    try:
        parts = shlex.split(command)
    except ValueError as e:
        raise LaunchFailed(command, e) from e

    argv = [part.replace("%%", "%") for part in parts if part not in _FIELD_CODES]
    if not argv:
        raise LaunchFailed(command, "empty command")
    return argv


def run_command(command: str) -> subprocess.Popen:
    """
    Start a command in its own session with output discarded.

    Raises:
        LaunchFailed: If the process could not be spawned
    """
    argv = parse_command(command)
    try:
        return subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (OSError, ValueError) as e:
        raise LaunchFailed(command, e) from e


def launch_entry(
    catalog: Catalog,
    entry_id: str,
    db_path: Path | str,
    runner: Callable[[str], object] = run_command,
) -> Entry:
    """
    Launch an entry, record it in frecency, and save the catalog.

    The catalog is only touched after the command has started, so a failed
    launch leaves every score unchanged.

    Args:
        catalog: Catalog that owns the entry
        entry_id: Id of an entry returned by the catalog
        db_path: Catalog file to write after recording the launch
        runner: Callable that starts a launch command

    Returns:
        Copy of the entry with its updated score

    Raises:
        EntryNotFound: If the id is not in the catalog
        LaunchFailed: If the command could not be started
        StorageWriteFailed: If the catalog could not be saved
        ScoreOverflow: If the launch could not be recorded
    """
    entry = catalog.get(entry_id)

    try:
        runner(entry.launch_command)
    except LaunchFailed:
        logger.warning(f"Failed to launch {entry.display_name}")
        raise
    except (OSError, ValueError) as e:
        raise LaunchFailed(entry.launch_command, e) from e

    catalog.record_launch(entry.id)
    save_catalog(catalog, db_path)

    logger.info(f"Launched {entry.display_name}")
    return entry.copy()
