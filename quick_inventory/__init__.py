"""Quick inventory package."""
from __future__ import annotations

from .records import COMPACT_FIELDS, FULL_FIELDS, FieldSet, InventoryRecord
from .service import InventoryService
from .store import RecordStore
from .wizard import FieldWizard, WizardConfig, WizardState

__all__ = [
    "COMPACT_FIELDS",
    "FULL_FIELDS",
    "FieldSet",
    "FieldWizard",
    "InventoryRecord",
    "InventoryService",
    "RecordStore",
    "WizardConfig",
    "WizardState",
    "create_app",
]


def create_app(*args, **kwargs):
    from .app import create_app as _create_app

    return _create_app(*args, **kwargs)
