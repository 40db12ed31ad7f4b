from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from flask import Flask
from flask.testing import FlaskClient

from quick_inventory.app import create_app
from quick_inventory.config import Settings
from quick_inventory.records import InventoryRecord
from quick_inventory.service import InventoryService
from quick_inventory.store import RecordStore

# 2023-11-14T22:13:20.000Z
FIXED_NOW = 1_700_000_000_000


@pytest.fixture()
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "inventario_rows_v1.json"


@pytest.fixture()
def settings(storage_path: Path) -> Settings:
    return Settings(
        storage_path=storage_path,
        environment="test",
        app_name="Test Inventory",
        log_level="WARNING",
        secret_key="test-secret",
    )


@pytest.fixture()
def store(storage_path: Path) -> RecordStore:
    return RecordStore(storage_path)


@pytest.fixture()
def service(store: RecordStore, settings: Settings) -> InventoryService:
    return InventoryService(store, settings, clock=lambda: FIXED_NOW)


@pytest.fixture()
def app(settings: Settings) -> Flask:
    return create_app(settings=settings)


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def make_record() -> Callable[..., InventoryRecord]:
    def _make(**values: str) -> InventoryRecord:
        created_at = int(values.pop("created_at", FIXED_NOW))
        return InventoryRecord(created_at=created_at, **values)

    return _make
