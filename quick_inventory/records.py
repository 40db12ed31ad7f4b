"""Inventory record model and the configurable set of form fields."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


CREATED_AT_KEY = "createdAt"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""

    return int(_now().timestamp() * 1000)


def to_iso_instant(value: int) -> str:
    """Serialize epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""

    try:
        moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_instant(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def format_local(value: int) -> str:
    """Render epoch milliseconds in the pt-BR day-first local format."""

    try:
        moment = datetime.fromtimestamp(value / 1000)
    except (OverflowError, OSError, ValueError):
        return ""
    return moment.strftime("%d/%m/%Y %H:%M:%S")


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_timestamp(value: Any) -> Optional[int]:
    """Best-effort conversion of a stored ``createdAt`` to epoch milliseconds."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return int(float(raw))
        except (OverflowError, ValueError):
            return parse_iso_instant(raw)
    return None


@dataclass(frozen=True)
class FieldSpec:
    """Describes one form field and every external spelling of it."""

    key: str
    wire_key: str
    label: str
    placeholder: str
    csv_header: str
    sheet_header: str
    header_tokens: Tuple[str, ...]
    json_keys: Tuple[str, ...]


EQUIPMENT_TYPE = FieldSpec(
    key="equipment_type",
    wire_key="equip",
    label="Equipamento",
    placeholder="Ex: Notebook, Monitor...",
    csv_header="EQUIP",
    sheet_header="EQUIPAMENTO",
    header_tokens=("EQUIP",),
    json_keys=("equip", "equipamento", "EQUIP", "EQUIPAMENTO"),
)
PATRIMONY = FieldSpec(
    key="patrimony",
    wire_key="patrimonio",
    label="Patrimônio",
    placeholder="Ex: 000123",
    csv_header="PATRIMONIO",
    sheet_header="PATRIMÔNIO",
    header_tokens=("PATRIM",),
    json_keys=("patrimonio", "PATRIMONIO", "PATRIMÔNIO"),
)
LOCATION = FieldSpec(
    key="location",
    wire_key="local",
    label="Local",
    placeholder="Ex: Mesa 12, TI, Recepção",
    csv_header="LOCAL",
    sheet_header="LOCAL",
    header_tokens=("LOCAL",),
    json_keys=("local", "LOCAL"),
)
MANUFACTURER = FieldSpec(
    key="manufacturer",
    wire_key="fabricante",
    label="Fabricante",
    placeholder="Ex: Dell, HP, Positivo",
    csv_header="FABRICANTE",
    sheet_header="FABRICANTE",
    header_tokens=("FABRIC",),
    json_keys=("fabricante", "FABRICANTE"),
)
MODEL = FieldSpec(
    key="model",
    wire_key="modelo",
    label="Modelo",
    placeholder="Ex: Latitude 5420",
    csv_header="MODELO",
    sheet_header="MODELO",
    header_tokens=("MODELO",),
    json_keys=("modelo", "MODELO"),
)
USER = FieldSpec(
    key="user",
    wire_key="usuario",
    label="Usuário",
    placeholder="Ex: Maria Silva",
    csv_header="USUARIO",
    sheet_header="USUÁRIO",
    header_tokens=("USUARIO", "USUÁRIO"),
    json_keys=("usuario", "USUARIO", "USUÁRIO"),
)

# Persisted key order of a record object.
_RECORD_SHAPE = (PATRIMONY, EQUIPMENT_TYPE, LOCATION, MANUFACTURER, MODEL, USER)


@dataclass(frozen=True)
class FieldSet:
    """Ordered fields walked by the wizard; the order also drives the sheet columns."""

    fields: Tuple[FieldSpec, ...]

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, index: int) -> FieldSpec:
        return self.fields[index]

    def __contains__(self, key: object) -> bool:
        return any(spec.key == key for spec in self.fields)

    def keys(self) -> Tuple[str, ...]:
        return tuple(spec.key for spec in self.fields)

    def get(self, key: str) -> FieldSpec:
        for spec in self.fields:
            if spec.key == key:
                return spec
        raise KeyError(f"Unknown field '{key}'")

    @property
    def csv_fields(self) -> Tuple[FieldSpec, ...]:
        """CSV column order: patrimony first, then the wizard order."""

        rest = tuple(spec for spec in self.fields if spec is not PATRIMONY)
        return (PATRIMONY,) + rest

    @classmethod
    def for_variant(cls, include_model: bool) -> "FieldSet":
        return FULL_FIELDS if include_model else COMPACT_FIELDS


FULL_FIELDS = FieldSet((EQUIPMENT_TYPE, PATRIMONY, LOCATION, MANUFACTURER, MODEL, USER))
COMPACT_FIELDS = FieldSet((EQUIPMENT_TYPE, PATRIMONY, LOCATION, MANUFACTURER, USER))


@dataclass
class InventoryRecord:
    """One finalized equipment entry."""

    created_at: int
    patrimony: str = ""
    equipment_type: str = ""
    location: str = ""
    manufacturer: str = ""
    model: str = ""
    user: str = ""

    def value(self, key: str) -> str:
        return getattr(self, key)

    def to_dict(self, fields: Optional[FieldSet] = None) -> Dict[str, Any]:
        active = set(fields.keys()) if fields is not None else None
        payload: Dict[str, Any] = {}
        for spec in _RECORD_SHAPE:
            if active is not None and spec.key not in active:
                continue
            payload[spec.wire_key] = self.value(spec.key)
        payload[CREATED_AT_KEY] = self.created_at
        return payload

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any], *, default_created_at: Optional[int] = None
    ) -> "InventoryRecord":
        created_at = coerce_timestamp(payload.get(CREATED_AT_KEY))
        if created_at is None:
            if default_created_at is None:
                raise ValueError("Record is missing createdAt")
            created_at = default_created_at
        values = {
            spec.key: coerce_text(payload.get(spec.wire_key)) for spec in _RECORD_SHAPE
        }
        return cls(created_at=created_at, **values)

    @classmethod
    def from_draft(cls, draft: Mapping[str, str], created_at: int) -> "InventoryRecord":
        values = {spec.key: coerce_text(draft.get(spec.key)) for spec in _RECORD_SHAPE}
        return cls(created_at=created_at, **values)


__all__ = [
    "CREATED_AT_KEY",
    "COMPACT_FIELDS",
    "EQUIPMENT_TYPE",
    "FULL_FIELDS",
    "FieldSet",
    "FieldSpec",
    "InventoryRecord",
    "LOCATION",
    "MANUFACTURER",
    "MODEL",
    "PATRIMONY",
    "USER",
    "coerce_text",
    "coerce_timestamp",
    "format_local",
    "now_ms",
    "parse_iso_instant",
    "to_iso_instant",
]
