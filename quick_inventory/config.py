"""Application configuration objects."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .records import FieldSet
from .store import DEFAULT_STORAGE_NAME
from .wizard import DEFAULT_EQUIPMENT_OPTIONS, DEFAULT_MANUFACTURER, WizardConfig


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Pydantic settings used to configure the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUICK_INVENTORY_",
        case_sensitive=False,
    )

    app_name: str = Field(
        default="Inventário Rápido",
        description="Human friendly name for the API.",
    )
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment environment flag.",
    )
    storage_path: Path = Field(
        default=Path(DEFAULT_STORAGE_NAME),
        description="JSON file holding the persisted record list.",
    )
    include_model: bool = Field(
        default=False,
        description="Ask for the equipment model between manufacturer and user.",
    )
    spreadsheet_style: Literal["plain", "styled"] = Field(
        default="styled",
        description="Decoration applied to exported workbooks.",
    )
    default_manufacturer: str = Field(
        default=DEFAULT_MANUFACTURER,
        description="Manufacturer pre-filled in every new draft.",
    )
    equipment_options: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EQUIPMENT_OPTIONS),
        description="Suggested equipment types offered by the first prompt.",
    )
    secret_key: str = Field(
        default="quick-inventory-secret-key",
        description="Key used to sign the Flask session cookie.",
    )
    log_level: str = Field(default="INFO", description="Root logging level.")

    @field_validator("equipment_options")
    @classmethod
    def _strip_options(cls, value: List[str]) -> List[str]:
        return [option.strip() for option in value if option and option.strip()]

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @property
    def field_set(self) -> FieldSet:
        return FieldSet.for_variant(self.include_model)

    def wizard_config(self) -> WizardConfig:
        return WizardConfig(
            fields=self.field_set,
            default_manufacturer=self.default_manufacturer,
            equipment_options=tuple(self.equipment_options),
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of :class:`Settings`."""

    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)


__all__ = ["LOG_FORMAT", "Settings", "configure_logging", "get_settings"]
