from __future__ import annotations

from datetime import UTC, datetime

from cosmic_split.models.row import MovementKind, Row
from cosmic_split.models.session_result import SessionResult, SessionState, StopReason
from cosmic_split.services.summary import format_seconds, render_summary_line

T = datetime(2024, 1, 1, tzinfo=UTC)


def _result(**overrides) -> SessionResult:
    fields = dict(
        state=SessionState.DONE,
        reason=StopReason.TARGET_MET,
        rows=[],
        rounds=3,
        max_rounds=12,
        distinct_processes=6,
        target_processes=5,
        start_time=T,
        end_time=T,
        elapsed_seconds=2.0,
    )
    fields.update(overrides)
    return SessionResult(**fields)


def test_render_summary_line_target_met():
    assert render_summary_line(_result()) == (
        "SUMMARY state=done reason=target_met rounds=3/12 processes=6/5 rows=0 "
        "moves=E:0,R:0,W:0,X:0 target_met=yes elapsed_sec=2"
    )


def test_render_summary_line_counts_movements_and_failure():
    rows = [
        Row("", "", "P", "d", MovementKind.ENTRY, "g1", "a, b, c"),
        Row("", "", "", "d", MovementKind.READ, "g2", "a, b, d"),
        Row("", "", "", "d", MovementKind.EXIT, "g3", "a, b, e"),
    ]
    line = render_summary_line(
        _result(
            state=SessionState.FAILED,
            reason=StopReason.GENERATOR_FAILURE,
            rows=rows,
            rounds=2,
            distinct_processes=1,
            elapsed_seconds=1.25,
        )
    )
    assert line == (
        "SUMMARY state=failed reason=generator_failure rounds=2/12 processes=1/5 rows=3 "
        "moves=E:1,R:1,W:0,X:1 target_met=no elapsed_sec=1.25"
    )


def test_format_seconds():
    assert format_seconds(0) == "0"
    assert format_seconds(3.0) == "3"
    assert format_seconds(0.0012) == "0.0012"
    assert format_seconds(12.3456) == "12.346"
