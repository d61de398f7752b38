from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

"""Row model for the COSMIC split table.

A Row is one sub-process record recovered from a generator reply. The display fields
follow merged-cell conventions: functional user, trigger event and functional process are
only filled on the Entry row of a group. The owning process of every other row is kept in
the internal ``parent_process`` field, which is never exported.
"""

__all__ = [
    "MovementKind",
    "Row",
    "DISPLAY_FIELDS",
]


class MovementKind(Enum):
    """Data-movement classification of a sub-process.

    - ENTRY: external input that triggers the functional process
    - READ: read from persistent storage
    - WRITE: write to persistent storage
    - EXIT: external output
    """
    ENTRY = "E"
    READ = "R"
    WRITE = "W"
    EXIT = "X"

    @classmethod
    def from_token(cls, token: str | None) -> MovementKind | None:
        """Return the kind for a single-letter cell value, or None if it is not one."""
        if not token:
            return None
        try:
            return cls(token.strip().upper())
        except ValueError:
            return None


# Externalized columns, in table order
DISPLAY_FIELDS: tuple[str, ...] = (
    "functional_user",
    "trigger_event",
    "functional_process",
    "sub_process_description",
    "movement_kind",
    "data_group",
    "data_attributes",
)


@dataclass(frozen=True)
class Row:
    """One sub-process row after alignment repair and field synthesis."""
    functional_user: str  # Only set on the Entry row of a group
    trigger_event: str  # Only set on the Entry row of a group
    functional_process: str  # Only set on the Entry row of a group
    sub_process_description: str
    movement_kind: MovementKind
    data_group: str
    data_attributes: str  # ", " joined attribute names
    parent_process: str = ""  # Owning process (internal, never exported)
    source_process: str = ""  # Raw process cell as emitted on an Entry row (internal)

    @property
    def is_entry(self) -> bool:
        return self.movement_kind is MovementKind.ENTRY

    def to_display_dict(self) -> dict[str, Any]:
        """Externalized view: internal fields dropped, movement kind as its letter."""
        data = asdict(self)
        data.pop("parent_process")
        data.pop("source_process")
        data["movement_kind"] = self.movement_kind.value
        return data
