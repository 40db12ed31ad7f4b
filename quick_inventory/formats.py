"""CSV and JSON converters for the record list."""
from __future__ import annotations

from datetime import date, datetime, timezone
from io import StringIO
from typing import Any, Iterable, List, Mapping, Optional, Sequence
import csv
import json
import logging

from . import notifications
from .errors import ImportFormatError, RestoreError
from .normalize import record_from_mapping, records_from_table
from .records import FieldSet, InventoryRecord, now_ms, to_iso_instant


logger = logging.getLogger(__name__)

CSV_CREATED_AT_HEADER = "CRIADO_EM"
BACKUP_VERSION = 1

CSV_MIMETYPE = "text/csv; charset=utf-8"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
JSON_MIMETYPE = "application/json"

_FILENAME_PATTERNS = {
    "csv": "inventario_{date}.csv",
    "xlsx": "inventario_{date}.xlsx",
    "backup": "backup_inventario_{date}.json",
}


def export_filename(kind: str, *, today: Optional[date] = None) -> str:
    """Download name for an export, embedding the current UTC date."""

    if kind not in _FILENAME_PATTERNS:
        raise ValueError(f"Unknown export kind '{kind}'")
    day = today or datetime.now(timezone.utc).date()
    return _FILENAME_PATTERNS[kind].format(date=day.isoformat())


# ----------------------------------------------------------------------
# CSV
# ----------------------------------------------------------------------
def records_to_csv(records: Sequence[InventoryRecord], fields: FieldSet) -> str:
    columns = fields.csv_fields
    buffer = StringIO()
    header_writer = csv.writer(buffer, lineterminator="\n")
    header_writer.writerow([spec.csv_header for spec in columns] + [CSV_CREATED_AT_HEADER])
    row_writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        row_writer.writerow(
            [record.value(spec.key) for spec in columns] + [to_iso_instant(record.created_at)]
        )
    return buffer.getvalue().rstrip("\n")


def split_csv_line(line: str) -> List[str]:
    """Split one data line on commas that sit outside double quotes.

    Quote characters only toggle the quoted mode and are never copied into
    the value, so a doubled quote inside a field disappears.
    """

    values: List[str] = []
    current: List[str] = []
    inside_quotes = False
    for char in line:
        if char == '"':
            inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            values.append(_clean_token("".join(current)))
            current = []
        else:
            current.append(char)
    values.append(_clean_token("".join(current)))
    return values


def _clean_token(token: str) -> str:
    text = token.strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text


def records_from_csv(
    text: str,
    fields: FieldSet,
    *,
    now: Optional[int] = None,
) -> List[InventoryRecord]:
    """Parse CSV text; every record gets a fresh timestamp."""

    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise ImportFormatError(notifications.CSV_INVALID)
    headers = lines[0].split(",")
    rows = [split_csv_line(line) for line in lines[1:]]
    stamp = now_ms() if now is None else now
    records = records_from_table(headers, rows, fields, created_at=stamp)
    if not records:
        raise ImportFormatError(notifications.CSV_NO_ROWS)
    logger.debug("Parsed %d CSV rows", len(records))
    return records


# ----------------------------------------------------------------------
# JSON backup envelope
# ----------------------------------------------------------------------
def backup_to_json(
    records: Iterable[InventoryRecord],
    *,
    exported_at: Optional[int] = None,
) -> str:
    payload = {
        "version": BACKUP_VERSION,
        "exportedAt": to_iso_instant(now_ms() if exported_at is None else exported_at),
        "rows": [record.to_dict() for record in records],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def records_from_backup(text: str, *, now: Optional[int] = None) -> List[InventoryRecord]:
    """Decode a backup envelope, keeping every entry and timestamp as stored."""

    try:
        payload: Any = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise RestoreError(notifications.RESTORE_FAILED) from exc
    rows = payload.get("rows") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        raise RestoreError(notifications.RESTORE_FAILED)
    stamp = now_ms() if now is None else now
    records: List[InventoryRecord] = []
    for entry in rows:
        if not isinstance(entry, Mapping):
            raise RestoreError(notifications.RESTORE_FAILED)
        records.append(InventoryRecord.from_dict(entry, default_created_at=stamp))
    return records


# ----------------------------------------------------------------------
# Lenient JSON import
# ----------------------------------------------------------------------
def records_from_json(
    text: str,
    fields: FieldSet,
    *,
    now: Optional[int] = None,
) -> List[InventoryRecord]:
    """Import a bare array, ``{"rows": [...]}`` or ``{"data": [...]}``."""

    try:
        payload: Any = json.loads(text or "[]")
    except json.JSONDecodeError as exc:
        raise ImportFormatError(notifications.JSON_FAILED) from exc
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("rows"), list):
        items = payload["rows"]
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        items = payload["data"]
    else:
        raise ImportFormatError(notifications.JSON_UNRECOGNIZED)
    if not items:
        raise ImportFormatError(notifications.JSON_EMPTY)
    stamp = now_ms() if now is None else now
    records = [
        record_from_mapping(item, fields, default_created_at=stamp)
        for item in items
        if isinstance(item, Mapping)
    ]
    if not records:
        raise ImportFormatError(notifications.JSON_FAILED)
    skipped = len(items) - len(records)
    if skipped:
        logger.warning("Skipped %d JSON entries that are not objects", skipped)
    return records


__all__ = [
    "BACKUP_VERSION",
    "CSV_CREATED_AT_HEADER",
    "CSV_MIMETYPE",
    "JSON_MIMETYPE",
    "XLSX_MIMETYPE",
    "backup_to_json",
    "export_filename",
    "records_from_backup",
    "records_from_csv",
    "records_from_json",
    "records_to_csv",
    "split_csv_line",
]
