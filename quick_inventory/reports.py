"""Grouping and counting views over the record list.

Groups use the raw field value as key: no trimming, no case folding, and
an empty string is never a group.  Dictionaries keep the order in which
each key first appears; count-sorted views are stable, so ties keep that
order too.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from .records import InventoryRecord


def count_by(records: Iterable[InventoryRecord], key: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        value = record.value(key)
        if value:
            counts[value] = counts.get(value, 0) + 1
    return counts


def sort_by_count(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    return sorted(counts.items(), key=lambda entry: -entry[1])


@dataclass
class Metrics:
    total_records: int = 0
    total_equipment: int = 0
    distinct_users: int = 0
    by_equipment_type: Dict[str, int] = field(default_factory=dict)
    by_location: Dict[str, int] = field(default_factory=dict)


def summarize(records: Sequence[InventoryRecord]) -> Metrics:
    return Metrics(
        total_records=len(records),
        total_equipment=sum(1 for record in records if record.equipment_type),
        distinct_users=len({record.user for record in records if record.user}),
        by_equipment_type=count_by(records, "equipment_type"),
        by_location=count_by(records, "location"),
    )


def equipment_type_counts(records: Sequence[InventoryRecord]) -> List[Tuple[str, int]]:
    """Equipment type -> count, most frequent first."""

    return sort_by_count(count_by(records, "equipment_type"))


def manufacturer_counts(records: Sequence[InventoryRecord]) -> List[Tuple[str, int]]:
    return sort_by_count(count_by(records, "manufacturer"))


def equipment_by_location(records: Sequence[InventoryRecord]) -> List[Tuple[str, str, int]]:
    """(location, equipment type, count) rows grouped by location."""

    grouped: Dict[str, Dict[str, int]] = {}
    for record in records:
        if not record.location:
            continue
        per_location = grouped.setdefault(record.location, {})
        if record.equipment_type:
            per_location[record.equipment_type] = per_location.get(record.equipment_type, 0) + 1
    return [
        (location, equipment_type, count)
        for location, counts in grouped.items()
        for equipment_type, count in counts.items()
    ]


def equipment_by_user(records: Sequence[InventoryRecord]) -> List[Tuple[str, int, str]]:
    """(user, total, comma-joined equipment list) for users holding equipment."""

    holdings: Dict[str, List[str]] = {}
    for record in records:
        if record.user and record.equipment_type:
            holdings.setdefault(record.user, []).append(record.equipment_type)
    rows = [(user, len(items), ", ".join(items)) for user, items in holdings.items()]
    return sorted(rows, key=lambda row: -row[1])


__all__ = [
    "Metrics",
    "count_by",
    "equipment_by_location",
    "equipment_by_user",
    "equipment_type_counts",
    "manufacturer_counts",
    "sort_by_count",
    "summarize",
]
