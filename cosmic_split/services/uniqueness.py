from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import replace

from cosmic_split.models.dataset import Dataset, attribute_key, normalize_key
from cosmic_split.models.row import Row

from .field_synthesis import NAME_SEPARATOR, join_attributes, sanitize_text, split_attributes
from .naming import MAX_NAME_LENGTH, NameGenerator, extract_keywords, group_keyword

"""Uniqueness engine for data group and attribute-list names.

Two phases share the same resolution machinery:

- incremental: each row of a new batch is checked against the dataset's indexes plus
  the rows of the batch already resolved; collisions ask the name generator first
- exhaustive: the whole dataset is rescanned after process de-duplication; the first
  occurrence of every name is kept and later occurrences are renamed with positional
  strategies first

Either way a candidate is only accepted when its case-insensitive key is not taken. An
attribute list is identified by its set of fields, so a reordering of a taken list is
still taken.
When every strategy collides a ``·N`` counter is appended, which always terminates.
Attribute collisions are resolved by appending one new field and shuffling the list
with the engine's seedable ``random.Random``.
"""

__all__ = [
    "UniquenessEngine",
    "group_strategies",
    "attribute_field_candidates",
]

logger = logging.getLogger(__name__)

PROCESS_PREFIX_LENGTH = 4
MIN_FIELD_CANDIDATE_LENGTH = 3


def _truncate(name: str) -> str:
    return name[:MAX_NAME_LENGTH]


def group_strategies(original: str, description: str, process: str, occurrence: int) -> list[str]:
    """Positional data-group candidates, in the order they are tried.

    ``occurrence`` is the 1-based position of the row among the duplicates of its name
    (the first occurrence, 0, is never renamed).
    """
    keywords = extract_keywords(description)
    candidates = []
    # Strategies whose ingredients are empty would only echo the original name
    if keywords.action or keywords.noun:
        candidates.append(f"{original}{NAME_SEPARATOR}{keywords.action}{keywords.noun}")
    if keywords.action:
        candidates.append(f"{keywords.action}{original}")
    if keywords.noun:
        candidates.append(f"{original}{keywords.noun}表")
    if process:
        candidates.append(f"{process[:PROCESS_PREFIX_LENGTH]}{original}")
    candidates.append(f"{original}{NAME_SEPARATOR}{occurrence + 1}号")
    return [_truncate(c) for c in candidates]


def attribute_field_candidates(
    description: str,
    process: str,
    data_group: str,
    occurrence: int,
) -> list[str]:
    """Positional candidates for the one field appended to a colliding attribute list."""
    keywords = extract_keywords(description)
    group_kw = group_keyword(data_group)
    candidates = []
    if keywords.action or keywords.noun:
        candidates.append(f"{keywords.action}{keywords.noun}参数")
    if group_kw or keywords.action:
        candidates.append(f"{group_kw}{keywords.action}字段")
    if process:
        candidates.append(f"{process[:PROCESS_PREFIX_LENGTH]}{occurrence + 1}号属性")
    if keywords.noun:
        candidates.append(f"{keywords.noun}状态")
    if keywords.action:
        candidates.append(f"{keywords.action}结果")
    candidates.append(f"扩展字段{occurrence + 1}")
    return [c for c in candidates if len(c) >= MIN_FIELD_CANDIDATE_LENGTH]


def _as_field(name: str) -> str:
    """A single attribute field out of arbitrary (possibly generated) text."""
    parts = split_attributes(sanitize_text(name))
    return parts[0] if parts else ""


class UniquenessEngine:
    """Resolves data group / attribute collisions for one session.

    Holds no name state between calls: the incremental phase seeds itself from the
    Dataset it is given and the exhaustive phase from the rows it is given.
    """

    def __init__(self, namer: NameGenerator | None = None, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.namer = namer or NameGenerator(rng=self.rng)
        self.renamed_groups = 0
        self.extended_attributes = 0

    # Incremental phase

    def resolve_incremental(self, rows: Iterable[Row], dataset: Dataset) -> list[Row]:
        """Make a new batch unique against the dataset and against itself, row by row."""
        groups: dict[str, str] = {
            key: dataset[positions[0]].data_group for key, positions in dataset.group_index.items()
        }
        attributes: dict[frozenset[str], str] = {
            key: dataset[positions[0]].data_attributes
            for key, positions in dataset.attribute_index.items()
        }
        group_hits: dict[str, int] = {key: len(p) for key, p in dataset.group_index.items()}
        attribute_hits: dict[frozenset[str], int] = {
            key: len(p) for key, p in dataset.attribute_index.items()
        }

        resolved: list[Row] = []
        for row in rows:
            data_group = row.data_group
            key = normalize_key(data_group)
            if key in groups:
                occurrence = group_hits.get(key, 1)
                group_hits[key] = occurrence + 1
                suggestion = sanitize_text(self.namer.group_name(
                    data_group,
                    row.sub_process_description,
                    row.parent_process,
                    list(groups.values()),
                ))
                data_group = self._unique_group(
                    row, occurrence, groups.__contains__, preferred=[suggestion]
                )
                key = normalize_key(data_group)
            if key:
                groups[key] = data_group

            data_attributes = row.data_attributes
            attr_key = attribute_key(data_attributes)
            if attr_key in attributes:
                occurrence = attribute_hits.get(attr_key, 1)
                attribute_hits[attr_key] = occurrence + 1
                suggestion = _as_field(self.namer.attribute_field(
                    data_attributes,
                    row.sub_process_description,
                    row.parent_process,
                    data_group,
                    list(attributes.values()),
                ))
                data_attributes = self._unique_attributes(
                    row, data_group, occurrence, attributes.__contains__, preferred=[suggestion]
                )
                attr_key = attribute_key(data_attributes)
            if attr_key:
                attributes[attr_key] = data_attributes

            resolved.append(replace(row, data_group=data_group, data_attributes=data_attributes))
        return resolved

    # Exhaustive phase

    def resolve_exhaustive(self, rows: Iterable[Row]) -> list[Row]:
        """Rename every non-first occurrence of a group or attribute key in ``rows``.

        A replacement may not collide with a name already finalized in the output, nor
        with the first occurrence of any name still ahead. Running this twice in a row
        changes nothing the second time.
        """
        rows = list(rows)
        first_group: dict[str, int] = {}
        first_attributes: dict[frozenset[str], int] = {}
        for position, row in enumerate(rows):
            first_group.setdefault(normalize_key(row.data_group), position)
            first_attributes.setdefault(attribute_key(row.data_attributes), position)
        first_group.pop("", None)
        first_attributes.pop(frozenset(), None)

        taken_groups = set(first_group)
        taken_attributes = set(first_attributes)
        group_hits: dict[str, int] = {}
        attribute_hits: dict[frozenset[str], int] = {}
        result: list[Row] = []
        renamed = 0

        for position, row in enumerate(rows):
            data_group = row.data_group
            key = normalize_key(data_group)
            if key and first_group[key] != position:
                occurrence = group_hits.get(key, 1)
                group_hits[key] = occurrence + 1
                data_group = self._unique_group(
                    row, occurrence, taken_groups.__contains__, ask_namer=True
                )
                taken_groups.add(normalize_key(data_group))
                logger.debug("Data group %r -> %r (row %d)", row.data_group, data_group, position)

            data_attributes = row.data_attributes
            attr_key = attribute_key(data_attributes)
            if attr_key and first_attributes[attr_key] != position:
                occurrence = attribute_hits.get(attr_key, 1)
                attribute_hits[attr_key] = occurrence + 1
                data_attributes = self._unique_attributes(
                    row, data_group, occurrence, taken_attributes.__contains__, ask_namer=True
                )
                taken_attributes.add(attribute_key(data_attributes))
                logger.debug(
                    "Data attributes %r -> %r (row %d)", row.data_attributes, data_attributes, position
                )

            if data_group != row.data_group or data_attributes != row.data_attributes:
                renamed += 1
                row = replace(row, data_group=data_group, data_attributes=data_attributes)
            result.append(row)

        if renamed:
            logger.info("Uniqueness pass rewrote %d of %d rows", renamed, len(rows))
        return result

    # Resolution

    def _unique_group(
        self,
        row: Row,
        occurrence: int,
        is_taken: Callable[[str], bool],
        preferred: list[str] | None = None,
        ask_namer: bool = False,
    ) -> str:
        """First untaken data-group name among: preferred, positional, namer, counter."""
        original = row.data_group
        candidates = list(preferred or [])
        candidates += group_strategies(
            original, row.sub_process_description, row.parent_process, occurrence
        )
        for candidate in candidates:
            if candidate and not is_taken(normalize_key(candidate)):
                self.renamed_groups += 1
                return candidate
        if ask_namer:
            suggestion = sanitize_text(self.namer.group_name(
                original, row.sub_process_description, row.parent_process, []
            ))
            if suggestion and not is_taken(normalize_key(suggestion)):
                self.renamed_groups += 1
                return suggestion
        counter = occurrence + 1
        while True:
            candidate = f"{original}{NAME_SEPARATOR}{counter}"
            if not is_taken(normalize_key(candidate)):
                self.renamed_groups += 1
                return candidate
            counter += 1

    def _unique_attributes(
        self,
        row: Row,
        data_group: str,
        occurrence: int,
        is_taken: Callable[[frozenset[str]], bool],
        preferred: list[str] | None = None,
        ask_namer: bool = False,
    ) -> str:
        """Attribute string extended by one new field and shuffled, with an untaken field set."""
        fields = split_attributes(row.data_attributes)
        present = {normalize_key(f) for f in fields}
        candidates = list(preferred or [])
        candidates += attribute_field_candidates(
            row.sub_process_description, row.parent_process, data_group, occurrence
        )
        for candidate in candidates:
            value = self._extended(fields, present, candidate, is_taken)
            if value:
                return value
        if ask_namer:
            suggestion = _as_field(self.namer.attribute_field(
                row.data_attributes, row.sub_process_description, row.parent_process, data_group, []
            ))
            value = self._extended(fields, present, suggestion, is_taken)
            if value:
                return value
        counter = occurrence + 1
        while True:
            value = self._extended(fields, present, f"扩展字段{NAME_SEPARATOR}{counter}", is_taken)
            if value:
                return value
            counter += 1

    def _extended(
        self,
        fields: list[str],
        present: set[str],
        new_field: str,
        is_taken: Callable[[frozenset[str]], bool],
    ) -> str | None:
        if not new_field or normalize_key(new_field) in present:
            return None
        extended = [*fields, new_field]
        self.rng.shuffle(extended)
        value = join_attributes(extended)
        if is_taken(attribute_key(value)):
            return None
        self.extended_attributes += 1
        return value
