"""
Error kinds raised by the frecent core.

Storage and launch failures are always raised to the caller; the core never
retries them and never falls back to an empty catalog.
"""

from pathlib import Path


class CatalogError(Exception):
    """Base exception."""


class ConfigInvalid(CatalogError, ValueError):
    """A configuration value (such as the half-life) is unusable."""


class EntryNotFound(CatalogError, LookupError):
    """An entry id that the catalog does not contain was used."""

    def __init__(self, entry_id: str):
        super().__init__(f"No entry with id {entry_id} in catalog")
        self.entry_id = entry_id


class StorageError(CatalogError):
    """Base class for catalog file failures."""

    action = "access"

    def __init__(self, path: Path | str | None, cause: BaseException | str):
        self.path = Path(path) if path is not None else None
        self.cause = cause
        where = f" {self.path}" if self.path is not None else ""
        super().__init__(f"Failed to {self.action} catalog file{where}: {cause}")


class StorageOpenFailed(StorageError):
    """The catalog file could not be opened or read."""

    action = "open"


class StorageNotFound(StorageOpenFailed):
    """The catalog file does not exist."""


class StorageWriteFailed(StorageError):
    """The catalog file could not be created or written."""

    action = "write"


class StorageDecodeFailed(StorageError):
    """The catalog bytes do not match the expected schema."""

    action = "decode"


class LaunchFailed(CatalogError):
    """The launch command could not be started."""

    def __init__(self, command: str, cause: BaseException | str):
        super().__init__(f"Execution failed with command {command!r}: {cause}")
        self.command = command
        self.cause = cause


class ScoreOverflow(CatalogError, ArithmeticError):
    """A stored score cannot be represented this far from the reference time."""

    def __init__(self, halvings: float):
        super().__init__(
            f"Score out of range {halvings:.0f} half-lives from the catalog reference time"
        )
        self.halvings = halvings
