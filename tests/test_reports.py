from quick_inventory.records import InventoryRecord
from quick_inventory.reports import (
    count_by,
    equipment_by_location,
    equipment_by_user,
    equipment_type_counts,
    manufacturer_counts,
    sort_by_count,
    summarize,
)


def _records(*rows: dict) -> list:
    return [InventoryRecord(created_at=index, **row) for index, row in enumerate(rows)]


def test_equipment_type_breakdown_sorted_by_count() -> None:
    records = _records({"equipment_type": "Mouse"}, {"equipment_type": "Mouse"}, {"equipment_type": "Monitor"})

    assert equipment_type_counts(records) == [("Mouse", 2), ("Monitor", 1)]


def test_grouping_uses_raw_values_and_skips_empty() -> None:
    records = _records(
        {"manufacturer": "Dell"},
        {"manufacturer": "dell"},
        {"manufacturer": "Dell "},
        {"manufacturer": ""},
    )

    assert count_by(records, "manufacturer") == {"Dell": 1, "dell": 1, "Dell ": 1}


def test_sort_by_count_is_stable() -> None:
    assert sort_by_count({"b": 1, "a": 2, "c": 1}) == [("a", 2), ("b", 1), ("c", 1)]


def test_summarize_metrics() -> None:
    records = _records(
        {"equipment_type": "Mouse", "user": "Ana", "location": "TI"},
        {"equipment_type": "Monitor", "user": "Ana", "location": "RH"},
        {"user": "Bia", "location": "TI"},
        {},
    )

    metrics = summarize(records)

    assert metrics.total_records == 4
    assert metrics.total_equipment == 2
    assert metrics.distinct_users == 2
    assert metrics.by_equipment_type == {"Mouse": 1, "Monitor": 1}
    assert metrics.by_location == {"TI": 2, "RH": 1}


def test_equipment_by_location_keeps_first_appearance_order() -> None:
    records = _records(
        {"location": "TI", "equipment_type": "Mouse"},
        {"location": "RH", "equipment_type": "Fone"},
        {"location": "TI", "equipment_type": "Monitor"},
        {"location": "TI", "equipment_type": "Mouse"},
        {"location": "Depósito"},
    )

    assert equipment_by_location(records) == [
        ("TI", "Mouse", 2),
        ("TI", "Monitor", 1),
        ("RH", "Fone", 1),
    ]


def test_equipment_by_user_requires_user_and_type() -> None:
    records = _records(
        {"user": "Ana", "equipment_type": "Mouse"},
        {"user": "Bia", "equipment_type": "Notebook"},
        {"user": "Bia", "equipment_type": "Fone"},
        {"user": "Caio"},
        {"equipment_type": "Monitor"},
    )

    assert equipment_by_user(records) == [
        ("Bia", 2, "Notebook, Fone"),
        ("Ana", 1, "Mouse"),
    ]


def test_manufacturer_counts() -> None:
    records = _records({"manufacturer": "HP"}, {"manufacturer": "Dell"}, {"manufacturer": "Dell"})

    assert manufacturer_counts(records) == [("Dell", 2), ("HP", 1)]
