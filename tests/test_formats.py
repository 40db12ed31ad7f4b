import json
from datetime import date

import pytest

from quick_inventory import notifications
from quick_inventory.errors import ImportFormatError, RestoreError
from quick_inventory.formats import (
    backup_to_json,
    export_filename,
    records_from_backup,
    records_from_csv,
    records_from_json,
    records_to_csv,
    split_csv_line,
)
from quick_inventory.records import COMPACT_FIELDS, FULL_FIELDS, InventoryRecord

NOW = 1_700_000_000_000


def _sample() -> list:
    return [
        InventoryRecord(
            created_at=NOW,
            patrimony="000123",
            equipment_type="Notebook",
            location="TI",
            manufacturer="Dell",
            user="Ana",
        ),
        InventoryRecord(created_at=NOW - 1000, equipment_type="Mouse", location="Recepção"),
    ]


def test_csv_export_layout() -> None:
    text = records_to_csv(_sample(), COMPACT_FIELDS)

    assert text.split("\n") == [
        "PATRIMONIO,EQUIP,LOCAL,FABRICANTE,USUARIO,CRIADO_EM",
        '"000123","Notebook","TI","Dell","Ana","2023-11-14T22:13:20.000Z"',
        '"","Mouse","Recepção","","","2023-11-14T22:13:19.000Z"',
    ]


def test_csv_export_includes_model_column_in_full_variant() -> None:
    record = InventoryRecord(created_at=NOW, equipment_type="Notebook", model="Latitude")
    header, row = records_to_csv([record], FULL_FIELDS).split("\n")

    assert header == "PATRIMONIO,EQUIP,LOCAL,FABRICANTE,MODELO,USUARIO,CRIADO_EM"
    assert '"Latitude"' in row


def test_csv_export_doubles_embedded_quotes() -> None:
    record = InventoryRecord(created_at=NOW, equipment_type='Monitor 24"')
    row = records_to_csv([record], COMPACT_FIELDS).split("\n")[1]

    assert '"Monitor 24"""' in row


def test_csv_round_trip_preserves_fields_and_restamps() -> None:
    text = records_to_csv(_sample(), COMPACT_FIELDS)

    imported = records_from_csv(text, COMPACT_FIELDS, now=5)

    assert [(r.equipment_type, r.patrimony, r.location, r.manufacturer, r.user) for r in imported] == [
        (r.equipment_type, r.patrimony, r.location, r.manufacturer, r.user) for r in _sample()
    ]
    assert {record.created_at for record in imported} == {5}


def test_csv_import_maps_headers_by_token() -> None:
    text = "\ufeffpatrimônio,Tipo Equipamento,Usuário\n1,Fone,Carla\n\n2,Mouse,\n"

    records = records_from_csv(text, COMPACT_FIELDS, now=1)

    assert len(records) == 2
    assert records[0].patrimony == "1"
    assert records[0].equipment_type == "Fone"
    assert records[0].user == "Carla"
    assert records[0].location == ""
    assert records[1].user == ""


def test_csv_import_requires_header_and_rows() -> None:
    with pytest.raises(ImportFormatError) as excinfo:
        records_from_csv("EQUIP,LOCAL\n\n", COMPACT_FIELDS)
    assert excinfo.value.message == notifications.CSV_INVALID

    with pytest.raises(ImportFormatError):
        records_from_csv("", COMPACT_FIELDS)


def test_split_csv_line_quote_handling() -> None:
    assert split_csv_line('a,"b,c",d') == ["a", "b,c", "d"]
    assert split_csv_line(' "x" , y ') == ["x", "y"]
    assert split_csv_line('"x ""y"""') == ["x y"]
    assert split_csv_line(",") == ["", ""]


def test_backup_round_trip_is_exact() -> None:
    records = _sample() + [InventoryRecord(created_at=3, model="Latitude")]

    restored = records_from_backup(backup_to_json(records, exported_at=NOW))

    assert restored == records


def test_backup_envelope_layout() -> None:
    payload = json.loads(backup_to_json(_sample(), exported_at=NOW))

    assert payload["version"] == 1
    assert payload["exportedAt"] == "2023-11-14T22:13:20.000Z"
    assert payload["rows"][0]["patrimonio"] == "000123"
    assert payload["rows"][0]["createdAt"] == NOW


def test_backup_of_empty_store_is_valid() -> None:
    assert records_from_backup(backup_to_json([], exported_at=NOW)) == []


@pytest.mark.parametrize(
    "text",
    ["not json", "[]", '{"version": 1}', '{"rows": {"a": 1}}', '{"rows": ["x"]}'],
)
def test_restore_rejects_bad_envelopes(text: str) -> None:
    with pytest.raises(RestoreError) as excinfo:
        records_from_backup(text)
    assert excinfo.value.message == notifications.RESTORE_FAILED


def test_restore_stamps_entries_without_timestamp() -> None:
    records = records_from_backup('{"rows": [{"equip": "Mouse"}]}', now=99)

    assert records[0].equipment_type == "Mouse"
    assert records[0].created_at == 99


def test_json_import_accepts_three_shapes() -> None:
    item = {"equip": "Mouse", "createdAt": 10}

    for text in (
        json.dumps([item]),
        json.dumps({"rows": [item]}),
        json.dumps({"data": [item]}),
    ):
        records = records_from_json(text, COMPACT_FIELDS, now=1)
        assert [(r.equipment_type, r.created_at) for r in records] == [("Mouse", 10)]


def test_json_import_candidate_keys_in_priority_order() -> None:
    text = json.dumps(
        [
            {
                "EQUIPAMENTO": "Monitor",
                "equipamento": "",
                "PATRIMÔNIO": "77",
                "LOCAL": "Sala 2",
                "FABRICANTE": "HP",
                "USUÁRIO": "Davi",
                "createdAt": "2023-11-14T22:13:20.000Z",
            },
            {"equip": "Fone", "EQUIP": "Ignored", "usuario": "Eva", "createdAt": "1234"},
        ]
    )

    first, second = records_from_json(text, COMPACT_FIELDS, now=1)

    assert (first.equipment_type, first.patrimony, first.location) == ("Monitor", "77", "Sala 2")
    assert (first.manufacturer, first.user) == ("HP", "Davi")
    assert first.created_at == NOW
    assert second.equipment_type == "Fone"
    assert second.user == "Eva"
    assert second.created_at == 1234


def test_json_import_restamps_missing_or_invalid_timestamp() -> None:
    text = json.dumps([{"equip": "A"}, {"equip": "B", "createdAt": "ontem"}, {"equip": "C", "createdAt": 0}])

    records = records_from_json(text, COMPACT_FIELDS, now=77)

    assert [record.created_at for record in records] == [77, 77, 77]


def test_json_import_ignores_model_in_compact_variant() -> None:
    text = json.dumps([{"equip": "Notebook", "modelo": "Latitude"}])

    assert records_from_json(text, COMPACT_FIELDS, now=1)[0].model == ""
    assert records_from_json(text, FULL_FIELDS, now=1)[0].model == "Latitude"


@pytest.mark.parametrize(
    "text, message",
    [
        ('{"items": []}', notifications.JSON_UNRECOGNIZED),
        ('"just text"', notifications.JSON_UNRECOGNIZED),
        ("[]", notifications.JSON_EMPTY),
        ('{"rows": []}', notifications.JSON_EMPTY),
        ("{broken", notifications.JSON_FAILED),
        ("[1, 2]", notifications.JSON_FAILED),
    ],
)
def test_json_import_failures(text: str, message: str) -> None:
    with pytest.raises(ImportFormatError) as excinfo:
        records_from_json(text, COMPACT_FIELDS)
    assert excinfo.value.message == message


def test_export_filenames_embed_date() -> None:
    day = date(2024, 3, 9)

    assert export_filename("csv", today=day) == "inventario_2024-03-09.csv"
    assert export_filename("xlsx", today=day) == "inventario_2024-03-09.xlsx"
    assert export_filename("backup", today=day) == "backup_inventario_2024-03-09.json"
    with pytest.raises(ValueError):
        export_filename("pdf", today=day)
