from __future__ import annotations

"""Pipe-table tokenizer.

A generator reply is free text with an embedded Markdown-style table. Only lines that
start with ``|`` belong to the table; the first two of those are the header and the
separator row. Each remaining line is split into trimmed cells, keeping blank cells in
the middle because they stand for merged cells rather than missing columns.
"""

__all__ = [
    "TABLE_PREFIX",
    "MIN_DATA_CELLS",
    "table_lines",
    "data_lines",
    "tokenize_line",
    "has_table",
]

TABLE_PREFIX = "|"
MIN_DATA_CELLS = 4
HEADER_LINES = 2


def table_lines(text: str) -> list[str]:
    """Return the lines of ``text`` that start with a pipe (leading whitespace ignored)."""
    return [line.strip() for line in (text or "").splitlines() if line.strip().startswith(TABLE_PREFIX)]


def has_table(text: str) -> bool:
    """True when the text holds header + separator + at least one data line."""
    return len(table_lines(text)) > HEADER_LINES


def data_lines(text: str) -> list[str]:
    """Table lines with header and separator dropped."""
    lines = table_lines(text)
    if len(lines) <= HEADER_LINES:
        return []
    return lines[HEADER_LINES:]


def tokenize_line(line: str) -> list[str] | None:
    """Split one table line into trimmed cells.

    The empty cell produced by a leading / trailing pipe is dropped; blank cells in the
    middle are kept. Returns None when fewer than ``MIN_DATA_CELLS`` cells remain, since
    such a line cannot be a data row.
    """
    cells = line.split(TABLE_PREFIX)
    if cells and cells[0].strip() == "":
        cells.pop(0)
    if cells and cells[-1].strip() == "":
        cells.pop()
    cells = [cell.strip() for cell in cells]
    if len(cells) < MIN_DATA_CELLS:
        return None
    return cells
