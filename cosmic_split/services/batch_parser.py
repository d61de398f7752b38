from __future__ import annotations

import logging

from cosmic_split.logging.error_log import ErrorLogBuffer
from cosmic_split.models.row import Row
from cosmic_split.table.alignment import AlignmentState, repair_row
from cosmic_split.table.tokenizer import data_lines, has_table, tokenize_line

from .field_synthesis import synthesize_fields

"""Batch reply parsing: tokenizer -> alignment repair -> field synthesis.

Malformed lines are absorbed: a line with too few cells is not a data row, and a row
without a movement-kind anchor is skipped and recorded as MALFORMED_ROW. Neither aborts
the batch. Carried merged-cell state starts empty for every reply.
"""

__all__ = [
    "parse_reply",
]

logger = logging.getLogger(__name__)


def parse_reply(text: str, error_log: ErrorLogBuffer | None = None, round_number: int = 0) -> list[Row]:
    """Parse the table in one generator reply into Rows, in order."""
    if not has_table(text):
        logger.debug("Reply holds no table data lines")
        return []
    lines = data_lines(text)

    state = AlignmentState()
    rows: list[Row] = []
    rejected = 0
    for index, line in enumerate(lines):
        cells = tokenize_line(line)
        if cells is None:
            continue
        row = repair_row(cells, state, index)
        if row is None:
            rejected += 1
            if error_log is not None:
                error_log.record(round_number, index, "MALFORMED_ROW", f"no movement kind in: {line[:120]}")
            continue
        rows.append(synthesize_fields(row))

    if rejected:
        logger.warning("Round %d: %d malformed rows skipped", round_number, rejected)
    logger.debug("Round %d: parsed %d rows from %d table lines", round_number, len(rows), len(lines))
    return rows
