from __future__ import annotations

import re
from dataclasses import replace

from cosmic_split.models.dataset import ATTRIBUTE_DELIMITERS
from cosmic_split.models.row import Row

"""Field synthesis for data group / data attribute cells.

Fills blank cells with defaults derived from the owning process and the sub-process
description, enforces at least ``MIN_ATTRIBUTES`` attribute names, and sanitizes both
fields. Hyphens are reserved as a delimiter by downstream table rendering, so they are
replaced with a middle dot.
"""

__all__ = [
    "MIN_ATTRIBUTES",
    "NAME_SEPARATOR",
    "ATTRIBUTE_SEPARATOR",
    "split_attributes",
    "join_attributes",
    "ensure_minimum_attributes",
    "sanitize_text",
    "default_data_group",
    "default_data_attributes",
    "synthesize_fields",
]

MIN_ATTRIBUTES = 3
NAME_SEPARATOR = "·"
ATTRIBUTE_SEPARATOR = ", "

PROCESS_PLACEHOLDER = "功能过程"
SUB_PROCESS_PLACEHOLDER = "子过程"
DATA_PLACEHOLDER = "数据"

# Generic names appended after the process / sub-process derived ones
GENERIC_ATTRIBUTES = ("记录时间", "更新时间", "操作人", "状态标记")
LAST_RESORT_ATTRIBUTES = ("记录编号", "业务描述", "处理状态", "参数", "编号", "ID")

_WHITESPACE = re.compile(r"\s+")


def split_attributes(value: str | None) -> list[str]:
    """Split an attribute string on any common delimiter, dropping blanks and repeats."""
    fields: list[str] = []
    for part in ATTRIBUTE_DELIMITERS.split(value or ""):
        name = part.strip()
        if name and name not in fields:
            fields.append(name)
    return fields


def join_attributes(fields: list[str]) -> str:
    return ATTRIBUTE_SEPARATOR.join(fields)


def ensure_minimum_attributes(value: str, process: str = "", description: str = "") -> str:
    """Return the attribute string with at least MIN_ATTRIBUTES entries.

    Candidates are tried in a fixed order: process identifier / number, sub-process
    parameter / result, then generic fields.
    """
    fields = split_attributes(value)
    process_name = process or PROCESS_PLACEHOLDER
    sub_process = description or SUB_PROCESS_PLACEHOLDER
    candidates = [
        f"{process_name}标识",
        f"{process_name}编号",
        f"{sub_process}参数",
        f"{sub_process}结果",
        *GENERIC_ATTRIBUTES,
        *LAST_RESORT_ATTRIBUTES,
    ]
    for candidate in candidates:
        if len(fields) >= MIN_ATTRIBUTES:
            break
        if candidate not in fields:
            fields.append(candidate)
    return join_attributes(fields)


def sanitize_text(value: str | None) -> str:
    """Replace hyphens and collapse whitespace."""
    return _WHITESPACE.sub(" ", (value or "").replace("-", NAME_SEPARATOR)).strip()


def default_data_group(process: str, description: str) -> str:
    return f"{process or PROCESS_PLACEHOLDER}{NAME_SEPARATOR}{description or DATA_PLACEHOLDER}"


def default_data_attributes(process: str, description: str) -> str:
    return join_attributes([
        f"{process or PROCESS_PLACEHOLDER}ID",
        f"{description or SUB_PROCESS_PLACEHOLDER}字段",
        "记录时间",
    ])


def synthesize_fields(row: Row) -> Row:
    """Fill blank data group / attributes and normalize both fields."""
    process = row.parent_process
    description = row.sub_process_description
    data_group = row.data_group or default_data_group(process, description)
    data_attributes = row.data_attributes or default_data_attributes(process, description)
    # Sanitized before the floor too, so two fields cannot collapse into one afterwards
    data_attributes = ensure_minimum_attributes(sanitize_text(data_attributes), process, description)
    return replace(
        row,
        data_group=sanitize_text(data_group),
        data_attributes=sanitize_text(data_attributes),
    )
