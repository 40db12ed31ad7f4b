"""Record store mirrored to a JSON array on disk."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Iterable, Iterator, List, Optional
import json
import logging

from .records import InventoryRecord


logger = logging.getLogger(__name__)

DEFAULT_STORAGE_NAME = "inventario_rows_v1.json"


@dataclass
class RecordStore:
    """Holds the newest-first record list and rewrites the whole file on every change."""

    storage_path: Path
    _records: List[InventoryRecord] = field(default_factory=list, init=False)
    _lock: RLock = field(default_factory=RLock, init=False)

    def __post_init__(self) -> None:
        self.storage_path = Path(self.storage_path)
        with self._lock:
            self._records = self.load()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[InventoryRecord]:
        return iter(self.records)

    @property
    def records(self) -> List[InventoryRecord]:
        with self._lock:
            return list(self._records)

    def get(self, index: int) -> Optional[InventoryRecord]:
        with self._lock:
            if 0 <= index < len(self._records):
                return self._records[index]
            return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def append(self, record: InventoryRecord) -> InventoryRecord:
        """Insert ``record`` at the front of the list."""

        with self._lock:
            self._replace_unlocked([record] + self._records)
        logger.info("Record added (patrimony=%r, total=%d)", record.patrimony, len(self))
        return record

    def prepend_many(self, records: Iterable[InventoryRecord]) -> int:
        """Insert ``records`` ahead of the existing ones, keeping their order."""

        incoming = list(records)
        with self._lock:
            self._replace_unlocked(incoming + self._records)
        logger.info("Prepended %d records", len(incoming))
        return len(incoming)

    def remove_at(self, index: int) -> Optional[InventoryRecord]:
        """Remove the record at ``index``; out-of-range positions are ignored."""

        removed: Optional[InventoryRecord] = None
        with self._lock:
            remaining = list(self._records)
            if 0 <= index < len(remaining):
                removed = remaining.pop(index)
            self._replace_unlocked(remaining)
        if removed is None:
            logger.info("Ignored removal of missing position %d", index)
        else:
            logger.info("Removed record at position %d", index)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._replace_unlocked([])
        logger.info("Cleared all records")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> List[InventoryRecord]:
        """Read the persisted array; absent or malformed content yields ``[]``."""

        if not self.storage_path.exists():
            return []
        try:
            raw = self.storage_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Unable to read %s, starting empty", self.storage_path)
            return []
        if not raw.strip():
            return []
        try:
            payload: Any = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Persisted records in %s are not valid JSON", self.storage_path)
            return []
        if not isinstance(payload, list):
            logger.warning("Persisted records in %s are not an array", self.storage_path)
            return []
        records: List[InventoryRecord] = []
        for position, entry in enumerate(payload):
            if not isinstance(entry, dict):
                logger.warning("Skipping persisted entry %d: not an object", position)
                continue
            try:
                records.append(InventoryRecord.from_dict(entry))
            except ValueError:
                logger.warning("Skipping persisted entry %d: missing createdAt", position)
        return records

    def _replace_unlocked(self, records: List[InventoryRecord]) -> None:
        """Persist ``records`` first; memory only changes once the file is written."""

        self._write_unlocked(records)
        self._records = records

    def _write_unlocked(self, records: List[InventoryRecord]) -> None:
        payload = [record.to_dict() for record in records]
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.storage_path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(self.storage_path)


__all__ = ["DEFAULT_STORAGE_NAME", "RecordStore"]
