"""Exceptions raised by the inventory core and handled by the service layer."""
from __future__ import annotations


class InventoryError(Exception):
    """Base class for failures that are reported to the user as a notification."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NothingToSaveError(InventoryError, ValueError):
    pass


class EmptyExportError(InventoryError):
    pass


class ImportFormatError(InventoryError, ValueError):
    pass


class RestoreError(InventoryError, ValueError):
    pass


class ConfirmationRequired(InventoryError):
    """Raised when a destructive action is invoked without confirmation."""

    def __init__(self, title: str, description: str) -> None:
        super().__init__(title)
        self.title = title
        self.description = description


__all__ = [
    "InventoryError",
    "NothingToSaveError",
    "EmptyExportError",
    "ImportFormatError",
    "RestoreError",
    "ConfirmationRequired",
]
