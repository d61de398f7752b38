from __future__ import annotations

import logging
from dataclasses import dataclass

from cosmic_split.models.row import MovementKind, Row

"""Hierarchy and column-alignment repair.

Turns a tokenized cell list into a structurally valid Row. Two generator habits are
tolerated:

1. Merged cells: functional user / trigger event / functional process are written once on
   the Entry row and left blank below it. The values are carried forward inside
   ``AlignmentState`` and recorded on every row as ``parent_process``.
2. Column drift: cells shifted left or right. The movement-kind letter is the only field
   with a closed vocabulary, so it is used as the anchor to re-derive the description,
   data group and attribute cells around it.

Non-Entry rows never display the process columns, even when the generator repeated the
process name on them; the raw values are dropped.
"""

__all__ = [
    "AlignmentState",
    "NOMINAL_COLUMNS",
    "ATTRIBUTE_JOINER",
    "find_movement_anchor",
    "repair_row",
]

logger = logging.getLogger(__name__)

# Nominal cell positions
NOMINAL_COLUMNS = {
    "functional_user": 0,
    "trigger_event": 1,
    "functional_process": 2,
    "sub_process_description": 3,
    "movement_kind": 4,
    "data_group": 5,
    "data_attributes": 6,
}
ATTRIBUTE_JOINER = " | "


@dataclass
class AlignmentState:
    """Merged-cell values carried across the rows of one batch."""
    functional_user: str = ""
    trigger_event: str = ""
    functional_process: str = ""


def _cell(cells: list[str], index: int) -> str:
    if 0 <= index < len(cells):
        return cells[index] or ""
    return ""


def find_movement_anchor(cells: list[str]) -> int | None:
    """Index of the first cell holding a movement-kind letter, or None."""
    for index, cell in enumerate(cells):
        if MovementKind.from_token(cell) is not None:
            return index
    return None


def repair_row(cells: list[str], state: AlignmentState, row_index: int = -1) -> Row | None:
    """Build a Row from one tokenized line, updating the carried state.

    Args:
        cells: Trimmed cells from the tokenizer (at least 4)
        state: Carried merged-cell values for the current batch (mutated)
        row_index: Position of the line in the batch, for log messages only

    Returns:
        The repaired Row, or None when no movement-kind anchor exists (malformed row).
        Data group / attributes may still be empty; field synthesis fills them.
    """
    description = _cell(cells, NOMINAL_COLUMNS["sub_process_description"])
    data_group = _cell(cells, NOMINAL_COLUMNS["data_group"])
    data_attributes = _cell(cells, NOMINAL_COLUMNS["data_attributes"])

    kind = MovementKind.from_token(_cell(cells, NOMINAL_COLUMNS["movement_kind"]))
    if kind is None:
        anchor = find_movement_anchor(cells)
        if anchor is None:
            logger.debug("row %d rejected: no movement kind in %s", row_index, cells)
            return None
        kind = MovementKind(cells[anchor].strip().upper())
        # Best effort: description sits left of the anchor, data group right of it
        description = _cell(cells, anchor - 1) or description
        data_group = _cell(cells, anchor + 1) or data_group
        trailing = [c for c in cells[anchor + 2:] if c]
        data_attributes = ATTRIBUTE_JOINER.join(trailing) or data_attributes
        logger.debug(
            "row %d realigned on movement kind at cell %d (nominal %d)",
            row_index,
            anchor,
            NOMINAL_COLUMNS["movement_kind"],
        )

    raw_user = _cell(cells, NOMINAL_COLUMNS["functional_user"])
    raw_trigger = _cell(cells, NOMINAL_COLUMNS["trigger_event"])
    raw_process = _cell(cells, NOMINAL_COLUMNS["functional_process"])

    if kind is MovementKind.ENTRY:
        if raw_process:
            state.functional_process = raw_process
        if raw_user:
            state.functional_user = raw_user
        if raw_trigger:
            state.trigger_event = raw_trigger
        return Row(
            functional_user=state.functional_user,
            trigger_event=state.trigger_event,
            functional_process=state.functional_process,
            sub_process_description=description,
            movement_kind=kind,
            data_group=data_group,
            data_attributes=data_attributes,
            parent_process=state.functional_process,
            source_process=raw_process,
        )

    if raw_process and raw_process != state.functional_process:
        logger.debug(
            "row %d: process name %r suppressed on %s row (current process %r)",
            row_index,
            raw_process,
            kind.value,
            state.functional_process,
        )
    return Row(
        functional_user="",
        trigger_event="",
        functional_process="",
        sub_process_description=description,
        movement_kind=kind,
        data_group=data_group,
        data_attributes=data_attributes,
        parent_process=state.functional_process,
    )
