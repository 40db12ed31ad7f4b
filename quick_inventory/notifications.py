"""Transient user-facing notifications and their pt-BR wording."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal


ITEM_ADDED = "Item adicionado!"
QUICK_ADD_SAVED = "Item salvo (adição rápida)"
NOTHING_TO_SAVE = "Preencha pelo menos um campo"
NOTHING_TO_EXPORT = "Nada para exportar"
CSV_EXPORTED = "CSV gerado"
XLSX_EXPORTED = "Excel gerado"
BACKUP_EXPORTED = "Backup baixado"
BACKUP_RESTORED = "Backup restaurado"
RESTORE_FAILED = "Falha ao restaurar backup"
RECORDS_CLEARED = "Registros apagados do dispositivo"
ITEM_REMOVED = "Item removido"
ITEM_NOT_FOUND = "Item não encontrado"
CLEAR_TITLE = "Limpar todos os registros?"
CLEAR_DESCRIPTION = (
    "Esta ação não pode ser desfeita. Todos os registros serão "
    "permanentemente removidos do dispositivo."
)
JSON_UNRECOGNIZED = "Formato de JSON não reconhecido"
JSON_EMPTY = "JSON vazio"
JSON_FAILED = "Erro ao processar JSON"
JSON_IMPORTED = "{count} itens importados do JSON"
CSV_INVALID = "CSV vazio ou inválido"
CSV_NO_ROWS = "Nenhum dado válido encontrado no CSV"
CSV_FAILED = "Erro ao processar CSV"
CSV_IMPORTED = "{count} itens importados do CSV"
SHEET_INVALID = "Planilha vazia ou inválida"
SHEET_IMPORTED = "{count} itens importados da planilha"
UNSUPPORTED_FILE = "Tipo de arquivo não suportado"


@dataclass(frozen=True)
class Notification:
    level: Literal["success", "error"]
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.level == "success"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.level, "message": self.message}
        payload.update(self.data)
        return payload


def success(message: str, **data: Any) -> Notification:
    return Notification("success", message, data)


def error(message: str, **data: Any) -> Notification:
    return Notification("error", message, data)


def removal_prompt(equipment_type: str, patrimony: str) -> str:
    """Confirmation question shown before deleting a single record."""

    label = equipment_type or "este item"
    suffix = f" (Patrimônio: {patrimony})" if patrimony else ""
    return f"Tem certeza que deseja remover {label}{suffix}?"
