"""
Data models shared across the frecent services.
"""

import uuid
from dataclasses import dataclass, field, replace


def _new_entry_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Entry:
    """
    A launchable application plus its usage score.

    The score is stored in decay-inverted form relative to the owning
    catalog's reference time (see services.frecency). Two entries describe
    the same application when their content_key matches, regardless of id.
    """
    display_name: str
    icon_ref: str
    launch_command: str
    score: float = 0.0
    id: str = field(default_factory=_new_entry_id)

    @property
    def content_key(self) -> tuple[str, str, str]:
        """Identity used to recognize an application across rescans."""
        return (self.display_name, self.icon_ref, self.launch_command)

    def copy(self) -> "Entry":
        """Independent copy with the same id and score."""
        return replace(self)

    def __str__(self) -> str:
        return f"{self.display_name} ({self.launch_command})"
