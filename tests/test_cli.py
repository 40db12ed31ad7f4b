import json
from pathlib import Path
from typing import Iterable, List

import pytest

from quick_inventory import cli, notifications
from quick_inventory.store import RecordStore


def _feed(monkeypatch: pytest.MonkeyPatch, answers: Iterable[str]) -> List[str]:
    remaining = iter(answers)
    prompts: List[str] = []

    def fake_input(prompt: str = "") -> str:
        prompts.append(prompt)
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)
    return prompts


def _run(storage: Path, *args: str) -> int:
    return cli.main(["--storage", str(storage), *args])


def test_add_walks_the_wizard(
    storage_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    prompts = _feed(monkeypatch, ["Notebook", "123", "TI", "", "Ana", ":sair"])

    assert _run(storage_path, "add") == 0

    records = RecordStore(storage_path).records
    assert len(records) == 1
    assert records[0].manufacturer == "Dell"
    assert records[0].user == "Ana"
    assert prompts[0].startswith("Passo 1 de 5: Equipamento")
    assert prompts[3] == "Passo 4 de 5: Fabricante [Dell]: "
    assert notifications.ITEM_ADDED in capsys.readouterr().out


def test_add_back_and_quick_save(storage_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _feed(monkeypatch, ["Mouse", cli.BACK_COMMAND, "Teclado", cli.SAVE_COMMAND])

    assert _run(storage_path, "add") == 0

    records = RecordStore(storage_path).records
    assert [record.equipment_type for record in records] == ["Teclado"]
    assert records[0].patrimony == ""


def test_list_and_delete(
    storage_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    source = storage_path.parent / "itens.json"
    source.write_text(json.dumps([{"equip": "Mouse", "patrimonio": "7"}]), encoding="utf-8")
    assert _run(storage_path, "import", str(source)) == 0

    assert _run(storage_path, "list") == 0
    assert "[0] Equipamento: Mouse  Patrimônio: 7" in capsys.readouterr().out

    _feed(monkeypatch, ["n"])
    assert _run(storage_path, "delete", "0") == 1
    assert len(RecordStore(storage_path)) == 1

    prompts = _feed(monkeypatch, ["s"])
    assert _run(storage_path, "delete", "0") == 0
    assert prompts == ["Tem certeza que deseja remover Mouse (Patrimônio: 7)? [s/N] "]
    assert len(RecordStore(storage_path)) == 0

    assert _run(storage_path, "delete", "3", "--yes") == 1


def test_clear_asks_for_confirmation(storage_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = storage_path.parent / "itens.csv"
    source.write_text("EQUIP,LOCAL\nMouse,TI\n", encoding="utf-8")
    assert _run(storage_path, "import", str(source)) == 0

    _feed(monkeypatch, ["n"])
    assert _run(storage_path, "clear") == 1
    assert len(RecordStore(storage_path)) == 1

    _feed(monkeypatch, ["sim"])
    assert _run(storage_path, "clear") == 0
    assert len(RecordStore(storage_path)) == 0


def test_export_refuses_empty_store(storage_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert _run(storage_path, "export", "csv") == 1
    assert notifications.NOTHING_TO_EXPORT in capsys.readouterr().out


def test_export_backup_and_restore(storage_path: Path, tmp_path: Path) -> None:
    source = tmp_path / "itens.json"
    source.write_text(json.dumps({"data": [{"equip": "Fone", "usuario": "Bia"}]}), encoding="utf-8")
    assert _run(storage_path, "import", str(source)) == 0

    csv_path = tmp_path / "out" / "inventario.csv"
    assert _run(storage_path, "export", "csv", "-o", str(csv_path)) == 0
    assert csv_path.read_text(encoding="utf-8").startswith("PATRIMONIO,EQUIP,")

    xlsx_path = tmp_path / "inventario.xlsx"
    assert _run(storage_path, "export", "xlsx", "--output", str(xlsx_path)) == 0
    assert xlsx_path.read_bytes()[:2] == b"PK"

    backup_path = tmp_path / "backup.json"
    assert _run(storage_path, "backup", "-o", str(backup_path)) == 0
    assert _run(storage_path, "clear", "--yes") == 0
    assert _run(storage_path, "restore", str(backup_path)) == 0

    records = RecordStore(storage_path).records
    assert [(record.equipment_type, record.user) for record in records] == [("Fone", "Bia")]


def test_import_reports_failures(storage_path: Path, tmp_path: Path) -> None:
    assert _run(storage_path, "import", str(tmp_path / "missing.csv")) == 1

    odd = tmp_path / "dados.txt"
    odd.write_text("x", encoding="utf-8")
    assert _run(storage_path, "import", str(odd)) == 1

    broken = tmp_path / "backup.json"
    broken.write_text("{}", encoding="utf-8")
    assert _run(storage_path, "restore", str(broken)) == 1


def test_no_command_prints_help(capsys: pytest.CaptureFixture) -> None:
    assert cli.main([]) == 1
    assert "quick-inventory" in capsys.readouterr().out
