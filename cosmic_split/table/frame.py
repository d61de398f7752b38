from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from cosmic_split.models.row import DISPLAY_FIELDS, Row

"""Tabular view of a finished Dataset.

Downstream spreadsheet tooling consumes plain rows; this module hands them over as a
pandas DataFrame with the table's own column headings. Blank merged cells can be filled
downward so that each row is self-contained when the grouping is lost (e.g. after
sorting in a spreadsheet).
"""

__all__ = [
    "COLUMN_HEADINGS",
    "MERGED_FIELDS",
    "rows_to_frame",
    "write_csv",
]

COLUMN_HEADINGS: dict[str, str] = {
    "functional_user": "功能用户",
    "trigger_event": "触发事件",
    "functional_process": "功能过程",
    "sub_process_description": "子过程描述",
    "movement_kind": "数据移动类型",
    "data_group": "数据组",
    "data_attributes": "数据属性",
}
MERGED_FIELDS = ("functional_user", "trigger_event", "functional_process")


def rows_to_frame(rows: Iterable[Row], *, fill_merged: bool = False, headings: bool = True) -> pd.DataFrame:
    """Build a DataFrame of the display columns.

    Args:
        rows: Rows in table order
        fill_merged: Copy the last non-blank functional user / trigger event / process
            value into the blank cells below it
        headings: Use the table headings as column names instead of field names
    """
    records = [row.to_display_dict() for row in rows]
    df = pd.DataFrame.from_records(records, columns=list(DISPLAY_FIELDS))
    if fill_merged and not df.empty:
        merged = list(MERGED_FIELDS)
        df[merged] = df[merged].mask(df[merged] == "").ffill().fillna("")
    if headings:
        df = df.rename(columns=COLUMN_HEADINGS)
    return df


def write_csv(rows: Iterable[Row], path: Path, *, fill_merged: bool = False) -> int:
    """Write rows as UTF-8 CSV (with BOM so spreadsheet apps detect the encoding).

    Returns:
        Number of data rows written
    """
    df = rows_to_frame(rows, fill_merged=fill_merged)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, encoding="utf-8-sig")
    return len(df)
