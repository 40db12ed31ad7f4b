"""User actions over the record store, each answered with a notification.

Core modules raise :class:`~quick_inventory.errors.InventoryError`
subclasses; this layer catches them, leaves the store untouched and turns
them into error notifications so that no failure escapes the handler that
triggered it.  The one exception is :class:`~quick_inventory.errors.ConfirmationRequired`,
which asks the caller to confirm a destructive action before retrying.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Type, Union
import logging

from . import notifications
from .config import Settings
from .errors import (
    ConfirmationRequired,
    EmptyExportError,
    ImportFormatError,
    InventoryError,
    NothingToSaveError,
    RestoreError,
)
from .formats import (
    CSV_MIMETYPE,
    JSON_MIMETYPE,
    XLSX_MIMETYPE,
    backup_to_json,
    export_filename,
    records_from_backup,
    records_from_csv,
    records_from_json,
    records_to_csv,
)
from .notifications import Notification
from .records import InventoryRecord, now_ms
from .spreadsheet import records_from_spreadsheet, records_to_xlsx, style_for
from .store import RecordStore
from .wizard import FieldWizard, WizardState


logger = logging.getLogger(__name__)

Payload = Union[str, bytes]


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    mimetype: str


class ExportResult(NamedTuple):
    notification: Notification
    file: Optional[ExportFile]


def _decode(
    data: Payload, failure: str, error_type: Type[InventoryError] = ImportFormatError
) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise error_type(failure) from exc


class InventoryService:
    """Binds a :class:`RecordStore` to the active field configuration."""

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.fields = self.settings.field_set
        self.wizard_config = self.settings.wizard_config()
        self.style = style_for(self.settings.spreadsheet_style)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "InventoryService":
        return cls(RecordStore(Path(settings.storage_path)), settings)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def list_records(self) -> List[InventoryRecord]:
        return self.store.records

    def remove_at(self, index: int) -> Notification:
        removed = self.store.remove_at(index)
        if removed is None:
            return notifications.error(notifications.ITEM_NOT_FOUND)
        return notifications.success(
            notifications.ITEM_REMOVED, record=removed.to_dict(self.fields)
        )

    def clear(self, *, confirmed: bool = False) -> Notification:
        """Empty the store.

        Raises :class:`ConfirmationRequired` unless the caller has already
        asked the user; the exception carries the question to show.
        """

        if not confirmed:
            raise ConfirmationRequired(notifications.CLEAR_TITLE, notifications.CLEAR_DESCRIPTION)
        self.store.clear()
        return notifications.success(notifications.RECORDS_CLEARED)

    # ------------------------------------------------------------------
    # Wizard
    # ------------------------------------------------------------------
    def wizard(
        self,
        state: Optional[WizardState] = None,
        *,
        on_notify: Optional[Callable[[Notification], None]] = None,
    ) -> FieldWizard:
        return FieldWizard(
            self.store,
            self.wizard_config,
            state=state,
            on_notify=on_notify,
            clock=self._clock,
        )

    def restore_wizard(self, payload: object) -> FieldWizard:
        return self.wizard(WizardState.from_dict(payload, self.wizard_config))

    def submit_step(self, wizard: FieldWizard, value: str) -> Optional[Notification]:
        """Answer the active prompt; a notification is returned only on finalization."""

        record = wizard.submit(value)
        if record is None:
            return None
        return notifications.success(
            notifications.ITEM_ADDED, record=record.to_dict(self.fields)
        )

    def quick_add(self, wizard: FieldWizard) -> Notification:
        try:
            record = wizard.quick_add()
        except NothingToSaveError as exc:
            logger.info("Quick add rejected: draft is empty")
            return notifications.error(exc.message)
        return notifications.success(
            notifications.QUICK_ADD_SAVED, record=record.to_dict(self.fields)
        )

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------
    def export_csv(self) -> ExportResult:
        try:
            records = self._records_for_export()
        except EmptyExportError as exc:
            return ExportResult(notifications.error(exc.message), None)
        filename = export_filename("csv")
        content = records_to_csv(records, self.fields).encode("utf-8")
        logger.info("Exported %d records to %s", len(records), filename)
        return ExportResult(
            notifications.success(notifications.CSV_EXPORTED, filename=filename),
            ExportFile(filename, content, CSV_MIMETYPE),
        )

    def export_xlsx(self) -> ExportResult:
        try:
            records = self._records_for_export()
        except EmptyExportError as exc:
            return ExportResult(notifications.error(exc.message), None)
        filename = export_filename("xlsx")
        content = records_to_xlsx(records, self.fields, style=self.style)
        logger.info("Exported %d records to %s", len(records), filename)
        return ExportResult(
            notifications.success(notifications.XLSX_EXPORTED, filename=filename),
            ExportFile(filename, content, XLSX_MIMETYPE),
        )

    def backup(self) -> ExportResult:
        filename = export_filename("backup")
        content = backup_to_json(self.store.records, exported_at=self._clock())
        logger.info("Backed up %d records to %s", len(self.store), filename)
        return ExportResult(
            notifications.success(notifications.BACKUP_EXPORTED, filename=filename),
            ExportFile(filename, content.encode("utf-8"), JSON_MIMETYPE),
        )

    def _records_for_export(self) -> List[InventoryRecord]:
        records = self.store.records
        if not records:
            logger.warning("Export requested with an empty store")
            raise EmptyExportError(notifications.NOTHING_TO_EXPORT)
        return records

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    def restore(self, data: Payload) -> Notification:
        try:
            records = records_from_backup(
                _decode(data, notifications.RESTORE_FAILED, RestoreError), now=self._clock()
            )
        except InventoryError as exc:
            logger.warning("Backup restore rejected: %s", exc.message)
            return notifications.error(exc.message)
        count = self.store.prepend_many(records)
        return notifications.success(notifications.BACKUP_RESTORED, count=count)

    def import_csv(self, data: Payload) -> Notification:
        try:
            records = records_from_csv(
                _decode(data, notifications.CSV_FAILED), self.fields, now=self._clock()
            )
        except ImportFormatError as exc:
            logger.warning("CSV import rejected: %s", exc.message)
            return notifications.error(exc.message)
        return self._imported(records, notifications.CSV_IMPORTED)

    def import_json(self, data: Payload) -> Notification:
        try:
            records = records_from_json(
                _decode(data, notifications.JSON_FAILED), self.fields, now=self._clock()
            )
        except ImportFormatError as exc:
            logger.warning("JSON import rejected: %s", exc.message)
            return notifications.error(exc.message)
        return self._imported(records, notifications.JSON_IMPORTED)

    def import_spreadsheet(self, data: bytes, filename: str) -> Notification:
        try:
            records = records_from_spreadsheet(
                data, filename, self.fields, now=self._clock()
            )
        except ImportFormatError as exc:
            logger.warning(
                "Spreadsheet import of %s rejected: %s", filename, exc.message, exc_info=True
            )
            return notifications.error(exc.message)
        return self._imported(records, notifications.SHEET_IMPORTED)

    def import_file(self, data: bytes, filename: str) -> Notification:
        """Dispatch an upload on its extension."""

        extension = Path(filename or "").suffix.lower()
        if extension == ".csv":
            return self.import_csv(data)
        if extension == ".json":
            return self.import_json(data)
        if extension in {".xlsx", ".xlsm", ".xls"}:
            return self.import_spreadsheet(data, filename)
        return notifications.error(notifications.UNSUPPORTED_FILE)

    def _imported(self, records: List[InventoryRecord], template: str) -> Notification:
        count = self.store.prepend_many(records)
        return notifications.success(template.format(count=count), count=count)


__all__ = ["ExportFile", "ExportResult", "InventoryService"]
