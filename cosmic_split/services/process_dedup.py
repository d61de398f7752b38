from __future__ import annotations

import logging
from collections.abc import Iterable

from cosmic_split.models.dataset import normalize_key
from cosmic_split.models.row import Row

"""Process-level de-duplication.

The generator sometimes re-emits a functional process it already produced in an
earlier round. When an Entry row carries a raw process name that was seen before, that
whole group is dropped: the Entry row and every following row up to the next Entry row
that names a process. Names compare case-insensitively.
"""

__all__ = [
    "remove_duplicate_processes",
]

logger = logging.getLogger(__name__)


def remove_duplicate_processes(rows: Iterable[Row]) -> tuple[list[Row], int]:
    """Drop repeated process groups.

    The check reads ``source_process`` (the raw process cell of the Entry row), not the
    carried display value, so an Entry row with a blank process cell continues the
    group before it.

    Returns:
        (kept rows in order, number of rows dropped)
    """
    seen: set[str] = set()
    kept: list[Row] = []
    dropped = 0
    skipping = False

    for row in rows:
        key = normalize_key(row.source_process) if row.is_entry else ""
        if key:
            skipping = key in seen
            if skipping:
                logger.info("Duplicate functional process %r dropped with its sub-processes", row.source_process)
            seen.add(key)
        if skipping:
            dropped += 1
            continue
        kept.append(row)

    if dropped:
        logger.info("Process de-duplication: %d rows dropped, %d processes kept", dropped, len(seen))
    return kept, dropped
