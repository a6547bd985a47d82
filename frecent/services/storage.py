"""
Catalog Storage - MessagePack encoding of a whole catalog.

Layout (schema version 1):
  {
    "version": 1,
    "reference_time": <float64>,
    "half_life": <float64>,
    "entries": [
      {"id": str, "name": str, "icon": str, "exec": str, "score": <float64>},
      ...
    ]
  }

The catalog is always written out whole; there is no append mode. Any
schema mismatch raises StorageDecodeFailed rather than returning a partial
catalog.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

import msgpack
from loguru import logger

from ..errors import (
    ConfigInvalid,
    StorageDecodeFailed,
    StorageNotFound,
    StorageOpenFailed,
    StorageWriteFailed,
)
from ..models import Entry
from ..search.matcher import FuzzyMatch
from .catalog import Catalog
from .frecency import DEFAULT_HALF_LIFE

SCHEMA_VERSION = 1


def dumps(catalog: Catalog) -> bytes:
    """Serialize a catalog to bytes."""
    payload = {
        "version": SCHEMA_VERSION,
        "reference_time": float(catalog.reference_time),
        "half_life": float(catalog.half_life),
        "entries": [
            {
                "id": entry.id,
                "name": entry.display_name,
                "icon": entry.icon_ref,
                "exec": entry.launch_command,
                "score": float(entry.score),
            }
            for entry in catalog.entries
        ],
    }
    # Floats are packed as 64-bit doubles (use_single_float defaults to False)
    return msgpack.packb(payload, use_bin_type=True)


def _field(record: dict, key: str, kinds, where: str):
    if key not in record:
        raise ValueError(f"{where}: missing field {key!r}")
    value = record[key]
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValueError(f"{where}: field {key!r} has type {type(value).__name__}")
    return value


def _decode_entry(record, index: int) -> Entry:
    where = f"entry {index}"
    if not isinstance(record, dict):
        raise ValueError(f"{where}: expected a map, got {type(record).__name__}")

    score = float(_field(record, "score", (int, float), where))
    if not score >= 0:
        raise ValueError(f"{where}: invalid score {score}")

    return Entry(
        display_name=_field(record, "name", str, where),
        icon_ref=_field(record, "icon", str, where),
        launch_command=_field(record, "exec", str, where),
        score=score,
        id=_field(record, "id", str, where),
    )


def _decode(payload, matcher: Optional[FuzzyMatch]) -> Catalog:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a map at top level, got {type(payload).__name__}")

    version = _field(payload, "version", int, "header")
    if version > SCHEMA_VERSION or version < 1:
        raise ValueError(f"unsupported schema version {version} (reader supports {SCHEMA_VERSION})")

    reference_time = float(_field(payload, "reference_time", (int, float), "header"))
    half_life = float(_field(payload, "half_life", (int, float), "header"))
    records = _field(payload, "entries", list, "header")

    entries = [_decode_entry(record, index) for index, record in enumerate(records)]
    keys = {entry.content_key for entry in entries}
    if len(keys) != len(entries):
        raise ValueError("duplicate entries with the same content")

    try:
        return Catalog(
            entries,
            reference_time=reference_time,
            half_life=half_life,
            matcher=matcher,
        )
    except ConfigInvalid as e:
        raise ValueError(str(e)) from e


def loads(data: bytes, matcher: Optional[FuzzyMatch] = None, path: Optional[Path] = None) -> Catalog:
    """
    Deserialize a catalog from bytes.

    Args:
        data: Bytes produced by dumps()
        matcher: Fuzzy matcher for the loaded catalog (default: rapidfuzz)
        path: File the bytes came from, used in error messages

    Raises:
        StorageDecodeFailed: If the bytes are not a valid catalog
    """
    try:
        payload = msgpack.unpackb(data, raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        raise StorageDecodeFailed(path, e) from e

    try:
        return _decode(payload, matcher)
    except (ValueError, TypeError) as e:
        raise StorageDecodeFailed(path, e) from e


def load_catalog(path, matcher: Optional[FuzzyMatch] = None) -> Catalog:
    """
    Load a catalog file.

    Args:
        path: Location of the catalog file

    Raises:
        StorageNotFound: If the file does not exist
        StorageOpenFailed: If the file cannot be read
        StorageDecodeFailed: If the contents are not a valid catalog
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise StorageNotFound(path, e) from e
    except OSError as e:
        raise StorageOpenFailed(path, e) from e

    catalog = loads(data, matcher=matcher, path=path)
    logger.debug(f"Loaded {len(catalog)} entries from {path}")
    return catalog


def save_catalog(catalog: Catalog, path) -> None:
    """
    Write a catalog file atomically.

    The bytes go to a temporary file next to `path` which then replaces it,
    so a failed write never leaves a truncated catalog behind.

    Raises:
        StorageWriteFailed: If the file cannot be created or written
    """
    path = Path(path)
    data = dumps(catalog)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix="." + path.name + "-",
            suffix=".tmp",
        )
    except OSError as e:
        raise StorageWriteFailed(path, e) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise StorageWriteFailed(path, e) from e

    logger.debug(f"Saved {len(catalog)} entries to {path}")


def open_catalog(
    path,
    scan: Optional[Iterable[Entry]] = None,
    half_life: float = DEFAULT_HALF_LIFE,
    matcher: Optional[FuzzyMatch] = None,
) -> Catalog:
    """
    Load the catalog file, creating it on first run.

    Only a missing file starts a fresh catalog, with `scan` merged into it so
    every scanned entry starts at a zero score. When the file exists and
    `scan` is given, the scan is merged in and the result saved.
    Every other storage failure is raised.

    Args:
        path: Location of the catalog file
        scan: Entries from the desktop-entry scanner, if a scan was done
        half_life: Half-life for a freshly created catalog
        matcher: Fuzzy matcher for the catalog
    """
    try:
        catalog = load_catalog(path, matcher=matcher)
    except StorageNotFound:
        logger.info(f"No catalog at {path}, creating a new one")
        catalog = Catalog(half_life=half_life, matcher=matcher)
        catalog.merge(scan or ())
        save_catalog(catalog, path)
        return catalog

    if scan is not None:
        report = catalog.merge(scan)
        if report.changed:
            save_catalog(catalog, path)
    return catalog
