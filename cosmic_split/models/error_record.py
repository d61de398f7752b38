from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the structured error log.

Records are written as JSON Lines with a fixed key set. ``row`` is the 0-based data-row
index inside the batch reply it came from; -1 marks round-level errors where no row
applies (generator failures, cancellations).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        round: Round number the error belongs to (0 when parsing outside a session)
        row: Data-row index within the reply, -1 for round-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable detail
    """
    timestamp: str  # ISO8601 UTC
    round: int
    row: int  # -1 allowed
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(round: int, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            round=round,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line without extra keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
