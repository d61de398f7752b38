from __future__ import annotations

from collections import Counter

from cosmic_split.models.row import MovementKind
from cosmic_split.models.session_result import SessionResult

"""SUMMARY line rendering for a finished analysis session.

Format:
SUMMARY state={done|failed} reason={reason} rounds={n}/{max} processes={n}/{target}
rows={n} moves=E:n,R:n,W:n,X:n target_met={yes|no} elapsed_sec={elapsed}
"""

__all__ = [
    "render_summary_line",
    "format_seconds",
]


def format_seconds(value: float) -> str:
    """Render seconds without trailing zeros or scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _movement_counts(result: SessionResult) -> str:
    counts = Counter(row.movement_kind.value for row in result.rows)
    return ",".join(f"{kind.value}:{counts.get(kind.value, 0)}" for kind in MovementKind)


def render_summary_line(result: SessionResult) -> str:
    """Render the SUMMARY line for ``result``.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from cosmic_split.models.session_result import SessionState, StopReason
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = SessionResult(
        ...     state=SessionState.DONE, reason=StopReason.TARGET_MET, rows=[],
        ...     rounds=3, max_rounds=12, distinct_processes=6, target_processes=5,
        ...     start_time=t, end_time=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY state=done reason=target_met rounds=3/12 processes=6/5 rows=0 moves=E:0,R:0,W:0,X:0 target_met=yes elapsed_sec=2'
    """
    return (
        f"SUMMARY state={result.state.value} "
        f"reason={result.reason.value} "
        f"rounds={result.rounds}/{result.max_rounds} "
        f"processes={result.distinct_processes}/{result.target_processes} "
        f"rows={len(result.rows)} "
        f"moves={_movement_counts(result)} "
        f"target_met={'yes' if result.target_met else 'no'} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
