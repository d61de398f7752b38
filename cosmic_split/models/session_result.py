from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .row import Row

"""Session state and result models.

State transitions of one analysis session:
idle -> requesting -> parsing -> evaluating -> (requesting | done | failed)
"""

__all__ = [
    "SessionState",
    "StopReason",
    "RoundStat",
    "SessionResult",
    "RoundStatsAccumulator",
]


class SessionState(Enum):
    """Round orchestrator states.

    - IDLE: session created, no request sent yet
    - REQUESTING: waiting for the generator's batch reply
    - PARSING: turning the reply into rows and merging them
    - EVALUATING: deciding whether to run another round
    - DONE: finished normally (target met or not)
    - FAILED: the batch request failed or was cancelled; rows so far are kept
    """
    IDLE = "idle"
    REQUESTING = "requesting"
    PARSING = "parsing"
    EVALUATING = "evaluating"
    DONE = "done"
    FAILED = "failed"


class StopReason(Enum):
    TARGET_MET = "target_met"
    GENERATOR_DONE = "generator_done"  # Completion marker received with target met
    ROUND_CAP = "round_cap"
    NO_PROGRESS = "no_progress"
    GENERATOR_FAILURE = "generator_failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RoundStat:
    """Per-round bookkeeping."""
    round_number: int
    parsed_rows: int  # Rows recovered from the reply (before process de-duplication)
    kept_rows: int  # Net rows added to the dataset after de-duplication
    distinct_processes: int  # Dataset-wide count after this round
    elapsed_seconds: float
    completion_signal: bool = False  # Reply carried a completion marker


@dataclass(frozen=True)
class SessionResult:
    """Final report handed back to the caller of run_session."""
    state: SessionState
    reason: StopReason
    rows: list[Row]
    rounds: int  # Rounds actually requested
    max_rounds: int
    distinct_processes: int
    target_processes: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    round_stats: list[RoundStat] = field(default_factory=list)
    error: str | None = None  # Failure detail (FAILED only)

    @property
    def target_met(self) -> bool:
        return self.distinct_processes >= self.target_processes

    @property
    def failed(self) -> bool:
        return self.state is SessionState.FAILED


class RoundStatsAccumulator:
    """Collects round timings and reports summary statistics."""

    def __init__(self) -> None:
        self.round_times: list[float] = []

    def add_round_time(self, elapsed_seconds: float) -> None:
        self.round_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate round statistics.

        Returns:
            tuple: (total_rounds, avg_round_seconds, max_round_seconds)
        """
        if not self.round_times:
            return (0, 0.0, 0.0)
        return (
            len(self.round_times),
            statistics.mean(self.round_times),
            max(self.round_times),
        )
