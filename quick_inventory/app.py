"""Flask application exposing the inventory wizard, exports and imports as a JSON API."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import logging

from flask import Flask, Response, jsonify, request, session

from .config import Settings, configure_logging, get_settings
from .errors import ConfirmationRequired
from .notifications import Notification
from .records import coerce_text
from .service import ExportFile, ExportResult, InventoryService
from .wizard import FieldWizard


logger = logging.getLogger(__name__)

WIZARD_SESSION_KEY = "wizard"


def create_app(
    storage_path: str | Path | None = None,
    settings: Optional[Settings] = None,
) -> Flask:
    settings = settings or get_settings()
    if storage_path is not None:
        settings = settings.model_copy(update={"storage_path": Path(storage_path)})
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["TESTING"] = settings.environment == "test"
    app.json.ensure_ascii = False

    service = InventoryService.from_settings(settings)
    app.extensions["quick_inventory"] = service
    logger.info(
        "%s ready with %d records from %s",
        settings.app_name,
        len(service.store),
        settings.storage_path,
    )

    def _json_error(message: str, status: int = 400, **extra: Any) -> Any:
        payload: Dict[str, Any] = {"status": "error", "message": message}
        payload.update(extra)
        return jsonify(payload), status

    def _notification_response(
        notification: Notification,
        *,
        success_status: int = 200,
        error_status: int = 400,
    ) -> Any:
        status = success_status if notification.ok else error_status
        return jsonify(notification.to_dict()), status

    def _load_wizard() -> FieldWizard:
        return service.restore_wizard(session.get(WIZARD_SESSION_KEY))

    def _wizard_response(
        wizard: FieldWizard,
        notification: Optional[Notification] = None,
        status: int = 200,
    ) -> Any:
        session[WIZARD_SESSION_KEY] = wizard.state.to_dict()
        return (
            jsonify(
                {
                    "wizard": wizard.prompt(),
                    "notification": notification.to_dict() if notification else None,
                }
            ),
            status,
        )

    def _download(result: ExportResult) -> Any:
        if result.file is None:
            return _notification_response(result.notification)
        return _file_response(result.file)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @app.get("/api/records")
    def list_records() -> Any:
        records = service.list_records()
        return jsonify(
            {
                "records": [record.to_dict(service.fields) for record in records],
                "count": len(records),
            }
        )

    @app.delete("/api/records/<int:index>")
    def remove_record(index: int) -> Any:
        return _notification_response(service.remove_at(index), error_status=404)

    @app.post("/api/records/clear")
    def clear_records() -> Any:
        payload = _get_payload(request)
        try:
            notification = service.clear(confirmed=payload.get("confirm") is True)
        except ConfirmationRequired as exc:
            return _json_error(
                exc.title, 409, confirmation_required=True, description=exc.description
            )
        return _notification_response(notification)

    # ------------------------------------------------------------------
    # Wizard
    # ------------------------------------------------------------------
    @app.get("/api/wizard")
    def wizard_state() -> Any:
        return _wizard_response(_load_wizard())

    @app.put("/api/wizard/draft")
    def edit_draft() -> Any:
        payload = _get_payload(request)
        key = payload.get("field")
        if not key:
            return _json_error("Missing field")
        wizard = _load_wizard()
        try:
            wizard.set_field(str(key), coerce_text(payload.get("value")))
        except KeyError:
            return _json_error(f"Unknown field '{key}'")
        return _wizard_response(wizard)

    @app.post("/api/wizard/submit")
    def submit_step() -> Any:
        payload = _get_payload(request)
        if "value" not in payload:
            return _json_error("Missing value")
        wizard = _load_wizard()
        notification = service.submit_step(wizard, coerce_text(payload.get("value")))
        return _wizard_response(wizard, notification, 201 if notification else 200)

    @app.post("/api/wizard/back")
    def step_back() -> Any:
        wizard = _load_wizard()
        wizard.back()
        return _wizard_response(wizard)

    @app.post("/api/wizard/quick-add")
    def quick_add() -> Any:
        wizard = _load_wizard()
        notification = service.quick_add(wizard)
        return _wizard_response(wizard, notification, 201 if notification.ok else 400)

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------
    @app.get("/api/export/csv")
    def export_csv() -> Any:
        return _download(service.export_csv())

    @app.get("/api/export/xlsx")
    def export_xlsx() -> Any:
        return _download(service.export_xlsx())

    @app.get("/api/backup")
    def export_backup() -> Any:
        return _download(service.backup())

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    @app.post("/api/import/csv")
    def import_csv() -> Any:
        try:
            data, _ = _read_upload(request)
        except ValueError as exc:
            return _json_error(str(exc))
        return _notification_response(service.import_csv(data), success_status=201)

    @app.post("/api/import/json")
    def import_json() -> Any:
        try:
            data, _ = _read_upload(request)
        except ValueError as exc:
            return _json_error(str(exc))
        return _notification_response(service.import_json(data), success_status=201)

    @app.post("/api/import/spreadsheet")
    def import_spreadsheet() -> Any:
        try:
            data, filename = _read_upload(request, default_filename="upload.xlsx")
        except ValueError as exc:
            return _json_error(str(exc))
        return _notification_response(
            service.import_spreadsheet(data, filename), success_status=201
        )

    @app.post("/api/backup/restore")
    def restore_backup() -> Any:
        try:
            data, _ = _read_upload(request)
        except ValueError as exc:
            return _json_error(str(exc))
        return _notification_response(service.restore(data), success_status=201)

    return app


def _get_payload(req: Any) -> Dict[str, Any]:
    if req.is_json:
        payload = req.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    if req.form:
        return req.form.to_dict()
    payload = req.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _read_upload(req: Any, *, default_filename: str = "") -> Tuple[bytes, str]:
    """Return the bytes and name of a multipart ``file`` upload or of the raw body."""

    if req.files or req.mimetype == "multipart/form-data":
        upload = req.files.get("file")
        if upload is None or upload.filename == "":
            raise ValueError("Missing upload file")
        try:
            raw_bytes = upload.read()
        finally:
            upload.close()
        filename = upload.filename
    else:
        raw_bytes = req.get_data()
        filename = req.args.get("filename") or default_filename
    if not raw_bytes:
        raise ValueError("Empty file")
    return raw_bytes, filename


def _file_response(export: ExportFile) -> Response:
    response = Response(export.content, mimetype=export.mimetype)
    response.headers["Content-Disposition"] = f"attachment; filename={export.filename}"
    return response


__all__ = ["create_app"]
