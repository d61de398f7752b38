from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from .row import Row

"""Dataset model: the accumulated rows of one analysis session.

The Dataset owns three derived indexes that are rebuilt whenever its rows change:

- lower-cased data group -> row positions
- attribute set (lower-cased fields, order ignored) -> row positions
- lower-cased functional process names seen on Entry rows

One Dataset belongs to exactly one session; nothing here is shared or global.
"""

__all__ = [
    "ATTRIBUTE_DELIMITERS",
    "Dataset",
    "attribute_key",
    "normalize_key",
]

ATTRIBUTE_DELIMITERS = re.compile(r"[|,、，;；]")


def normalize_key(value: str | None) -> str:
    """Case-insensitive comparison key for names."""
    return (value or "").strip().lower()


def attribute_key(value: str | None) -> frozenset[str]:
    """Identity of an attribute list: its lower-cased field names, order ignored."""
    return frozenset(
        key for key in (normalize_key(part) for part in ATTRIBUTE_DELIMITERS.split(value or "")) if key
    )


class Dataset:
    """Append-only row store with name indexes.

    Rows are only removed as whole duplicate process groups (see process de-duplication);
    otherwise fields are rewritten in place by swapping in updated Row instances.
    """

    def __init__(self, rows: Iterable[Row] | None = None) -> None:
        self._rows: list[Row] = list(rows or [])
        self.group_index: dict[str, list[int]] = {}
        self.attribute_index: dict[frozenset[str], list[int]] = {}
        self.process_names: set[str] = set()
        self._reindex()

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    @property
    def rows(self) -> list[Row]:
        """A copy of the rows, in order."""
        return list(self._rows)

    def replace_rows(self, rows: Iterable[Row]) -> None:
        """Swap the whole row list (after a de-duplication pass) and rebuild indexes."""
        self._rows = list(rows)
        self._reindex()

    def clear(self) -> None:
        self.replace_rows([])

    def distinct_process_count(self) -> int:
        return len(self.process_names)

    def process_display_names(self) -> list[str]:
        """Distinct process names in first-seen order, original casing kept."""
        seen: set[str] = set()
        names: list[str] = []
        for row in self._rows:
            key = normalize_key(row.functional_process)
            if key and key not in seen:
                seen.add(key)
                names.append(row.functional_process)
        return names

    def _reindex(self) -> None:
        self.group_index = {}
        self.attribute_index = {}
        self.process_names = set()
        for position, row in enumerate(self._rows):
            self._index_row(position, row)

    def _index_row(self, position: int, row: Row) -> None:
        group_key = normalize_key(row.data_group)
        if group_key:
            self.group_index.setdefault(group_key, []).append(position)
        attr_key = attribute_key(row.data_attributes)
        if attr_key:
            self.attribute_index.setdefault(attr_key, []).append(position)
        process_key = normalize_key(row.functional_process)
        if process_key:
            self.process_names.add(process_key)
