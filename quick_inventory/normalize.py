"""Best-effort mapping of external tabular and JSON data onto records.

Column headers are matched by case-insensitive substring tokens
(``"EQUIP"``, ``"PATRIM"``, ...) and JSON objects by an ordered list of
candidate key spellings per field, both taken from
:class:`~quick_inventory.records.FieldSpec`.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .records import (
    CREATED_AT_KEY,
    FieldSet,
    FieldSpec,
    InventoryRecord,
    coerce_text,
    coerce_timestamp,
)


def normalize_header(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).replace("\ufeff", "").strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text.upper()


def map_columns(headers: Sequence[Any], fields: FieldSet) -> Dict[str, int]:
    """Return ``{field key: column index}``; a later matching column wins."""

    columns: Dict[str, int] = {}
    for index, raw in enumerate(headers):
        header = normalize_header(raw)
        if not header:
            continue
        spec = match_header(header, fields)
        if spec is not None:
            columns[spec.key] = index
    return columns


def match_header(header: str, fields: FieldSet) -> Optional[FieldSpec]:
    for spec in fields:
        if any(token in header for token in spec.header_tokens):
            return spec
    return None


def record_from_columns(
    values: Sequence[Any],
    columns: Mapping[str, int],
    *,
    created_at: int,
) -> InventoryRecord:
    draft: Dict[str, str] = {}
    for key, index in columns.items():
        if index < len(values):
            draft[key] = coerce_text(values[index])
    return InventoryRecord.from_draft(draft, created_at)


def records_from_table(
    headers: Sequence[Any],
    rows: Iterable[Sequence[Any]],
    fields: FieldSet,
    *,
    created_at: int,
) -> List[InventoryRecord]:
    """Convert header + data rows into records stamped with ``created_at``."""

    columns = map_columns(headers, fields)
    return [record_from_columns(row, columns, created_at=created_at) for row in rows]


def lookup(item: Mapping[str, Any], spec: FieldSpec) -> str:
    """First non-empty value found under the field's candidate keys."""

    for key in spec.json_keys:
        value = item.get(key)
        if value:
            return coerce_text(value)
    return ""


def record_from_mapping(
    item: Mapping[str, Any],
    fields: FieldSet,
    *,
    default_created_at: int,
) -> InventoryRecord:
    draft = {spec.key: lookup(item, spec) for spec in fields}
    created_at = coerce_timestamp(item.get(CREATED_AT_KEY))
    if not created_at:
        created_at = default_created_at
    return InventoryRecord.from_draft(draft, created_at)


__all__ = [
    "lookup",
    "map_columns",
    "match_header",
    "normalize_header",
    "record_from_columns",
    "record_from_mapping",
    "records_from_table",
]
