"""Multi-sheet spreadsheet export and spreadsheet import."""
from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import re

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet
import xlrd

from . import notifications
from .errors import ImportFormatError
from .normalize import records_from_table
from .records import FieldSet, InventoryRecord, format_local, now_ms
from .reports import (
    equipment_by_location,
    equipment_by_user,
    equipment_type_counts,
    manufacturer_counts,
    summarize,
)


logger = logging.getLogger(__name__)

EMPTY_CELL = "-"
CREATED_AT_HEADER = "CRIADO EM"

_ILLEGAL_CHARACTERS = re.compile(r"[\000-\010]|[\013-\014]|[\016-\037]")


@dataclass
class SheetRow:
    values: Tuple[Any, ...]
    role: str = "data"


@dataclass
class Sheet:
    title: str
    headers: Tuple[str, ...]
    rows: List[SheetRow] = field(default_factory=list)
    autofilter: bool = False


# ----------------------------------------------------------------------
# Sheet plan
# ----------------------------------------------------------------------
def build_sheets(records: Sequence[InventoryRecord], fields: FieldSet) -> List[Sheet]:
    """Lay out every sheet of the export; empty breakdowns are left out."""

    sheets = [_records_sheet(records, fields), _metrics_sheet(records)]

    by_type = equipment_type_counts(records)
    if by_type:
        sheets.append(
            Sheet(
                "🔧 Por Tipo",
                ("TIPO DE EQUIPAMENTO", "QUANTIDADE"),
                [SheetRow(row) for row in by_type],
            )
        )

    by_location = equipment_by_location(records)
    if by_location:
        sheets.append(
            Sheet(
                "📍 Por Local",
                ("LOCAL", "EQUIPAMENTO", "QUANTIDADE"),
                [SheetRow(row) for row in by_location],
            )
        )

    by_user = equipment_by_user(records)
    if by_user:
        sheets.append(
            Sheet(
                "👤 Por Usuário",
                ("USUÁRIO", "TOTAL DE EQUIPAMENTOS", "LISTA DE EQUIPAMENTOS"),
                [SheetRow(row) for row in by_user],
            )
        )

    by_manufacturer = manufacturer_counts(records)
    if by_manufacturer:
        sheets.append(
            Sheet(
                "🏭 Fabricantes",
                ("FABRICANTE", "QUANTIDADE"),
                [SheetRow(row) for row in by_manufacturer],
            )
        )
    return sheets


def _records_sheet(records: Sequence[InventoryRecord], fields: FieldSet) -> Sheet:
    headers = tuple(spec.sheet_header for spec in fields) + (CREATED_AT_HEADER,)
    rows = [
        SheetRow(
            tuple(record.value(spec.key) or EMPTY_CELL for spec in fields)
            + (format_local(record.created_at),)
        )
        for record in records
    ]
    return Sheet("📊 Inventário Completo", headers, rows, autofilter=True)


def _metrics_sheet(records: Sequence[InventoryRecord]) -> Sheet:
    metrics = summarize(records)
    rows = [
        SheetRow(("Total de Registros", metrics.total_records), "metric"),
        SheetRow(("Total de Equipamentos", metrics.total_equipment), "metric"),
        SheetRow(("Pessoas com Equipamentos", metrics.distinct_users), "metric"),
        SheetRow((None, None), "blank"),
        SheetRow(("EQUIPAMENTOS POR TIPO", None), "section"),
    ]
    rows.extend(
        SheetRow((f"  {name}", count)) for name, count in metrics.by_equipment_type.items()
    )
    rows.append(SheetRow((None, None), "blank"))
    rows.append(SheetRow(("EQUIPAMENTOS POR LOCAL", None), "section"))
    rows.extend(SheetRow((f"  {name}", count)) for name, count in metrics.by_location.items())
    return Sheet("📈 Métricas Gerais", ("MÉTRICA", "VALOR"), rows)


# ----------------------------------------------------------------------
# Styling strategies
# ----------------------------------------------------------------------
class PlainStyle:
    """No decoration beyond the column widths."""

    name = "plain"

    def apply(self, worksheet: Worksheet, sheet: Sheet) -> None:
        return None


class StyledStyle(PlainStyle):
    """Colored header, bordered cells and an autofilter on the record sheet."""

    name = "styled"

    _thin_black = Side(style="thin", color="000000")
    _thin_grey = Side(style="thin", color="D0D0D0")

    header_font = Font(bold=True, color="FFFFFF", size=12)
    header_fill = PatternFill(fill_type="solid", start_color="4472C4", end_color="4472C4")
    header_alignment = Alignment(horizontal="center", vertical="center")
    header_border = Border(
        left=_thin_black, right=_thin_black, top=_thin_black, bottom=_thin_black
    )
    data_alignment = Alignment(horizontal="left", vertical="center")
    data_border = Border(left=_thin_grey, right=_thin_grey, top=_thin_grey, bottom=_thin_grey)
    metric_label_font = Font(bold=True, size=11)
    metric_label_fill = PatternFill(fill_type="solid", start_color="E7E6E6", end_color="E7E6E6")
    metric_value_font = Font(size=11)
    metric_value_fill = PatternFill(fill_type="solid", start_color="F2F2F2", end_color="F2F2F2")
    metric_value_alignment = Alignment(horizontal="center", vertical="center")
    section_font = Font(bold=True, size=14, color="203764")

    def apply(self, worksheet: Worksheet, sheet: Sheet) -> None:
        for cell in worksheet[1]:
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.header_alignment
            cell.border = self.header_border

        for offset, row in enumerate(sheet.rows, start=2):
            cells = worksheet[offset]
            if row.role == "section":
                cells[0].font = self.section_font
                cells[0].alignment = self.data_alignment
            elif row.role == "metric":
                cells[0].font = self.metric_label_font
                cells[0].fill = self.metric_label_fill
                cells[0].alignment = self.data_alignment
                for cell in cells[1:]:
                    cell.font = self.metric_value_font
                    cell.fill = self.metric_value_fill
                    cell.alignment = self.metric_value_alignment
            else:
                for cell in cells:
                    cell.alignment = self.data_alignment
                    cell.border = self.data_border

        if sheet.autofilter:
            last_column = get_column_letter(len(sheet.headers))
            worksheet.auto_filter.ref = f"A1:{last_column}{len(sheet.rows) + 1}"


_STYLES: Dict[str, PlainStyle] = {"plain": PlainStyle(), "styled": StyledStyle()}


def style_for(name: str) -> PlainStyle:
    try:
        return _STYLES[name]
    except KeyError:
        raise ValueError(f"Unknown spreadsheet style '{name}'") from None


# ----------------------------------------------------------------------
# Writing
# ----------------------------------------------------------------------
def records_to_xlsx(
    records: Sequence[InventoryRecord],
    fields: FieldSet,
    *,
    style: Optional[PlainStyle] = None,
) -> bytes:
    strategy = style or StyledStyle()
    workbook = Workbook()
    workbook.remove(workbook.active)
    for sheet in build_sheets(records, fields):
        worksheet = workbook.create_sheet(title=sheet.title)
        _write_row(worksheet, 1, sheet.headers)
        for offset, row in enumerate(sheet.rows, start=2):
            _write_row(worksheet, offset, row.values)
        _autosize_columns(worksheet, sheet)
        strategy.apply(worksheet, sheet)
    buffer = BytesIO()
    workbook.save(buffer)
    logger.debug("Built workbook with %d records using %s style", len(records), strategy.name)
    return buffer.getvalue()


def _write_row(worksheet: Worksheet, row_index: int, values: Sequence[Any]) -> None:
    for col_index, value in enumerate(values, start=1):
        if isinstance(value, str):
            value = _ILLEGAL_CHARACTERS.sub("", value)
        cell = worksheet.cell(row=row_index, column=col_index, value=value)
        if isinstance(value, str) and value.startswith("="):
            cell.data_type = "s"


def _autosize_columns(worksheet: Worksheet, sheet: Sheet) -> None:
    for col_index, header in enumerate(sheet.headers):
        longest = len(header)
        for row in sheet.rows:
            if col_index < len(row.values) and row.values[col_index] is not None:
                longest = max(longest, len(str(row.values[col_index])))
        worksheet.column_dimensions[get_column_letter(col_index + 1)].width = longest + 2


# ----------------------------------------------------------------------
# Reading
# ----------------------------------------------------------------------
def records_from_spreadsheet(
    data: bytes,
    filename: str,
    fields: FieldSet,
    *,
    now: Optional[int] = None,
) -> List[InventoryRecord]:
    """Import the first sheet of an ``.xlsx`` or legacy ``.xls`` workbook."""

    extension = Path(filename or "").suffix.lower()
    if extension == ".xls":
        headers, rows = _read_xls(data)
    elif extension in {".xlsx", ".xlsm"}:
        headers, rows = _read_xlsx(data)
    else:
        raise ImportFormatError(notifications.UNSUPPORTED_FILE)
    if not any(headers) or not rows:
        raise ImportFormatError(notifications.SHEET_INVALID)
    stamp = now_ms() if now is None else now
    records = records_from_table(headers, rows, fields, created_at=stamp)
    logger.debug("Parsed %d spreadsheet rows from %s", len(records), filename)
    return records


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return "" if text == EMPTY_CELL else text


def _keep_rows(raw_rows: List[List[str]]) -> List[List[str]]:
    return [row for row in raw_rows if any(value for value in row)]


def _read_xlsx(data: bytes) -> Tuple[List[str], List[List[str]]]:
    try:
        workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise ImportFormatError(notifications.SHEET_INVALID) from exc
    try:
        if not workbook.worksheets:
            raise ImportFormatError(notifications.SHEET_INVALID)
        values = [
            [_cell_text(value) for value in row]
            for row in workbook.worksheets[0].iter_rows(values_only=True)
        ]
    finally:
        workbook.close()
    if not values:
        return [], []
    return values[0], _keep_rows(values[1:])


def _read_xls(data: bytes) -> Tuple[List[str], List[List[str]]]:
    try:
        workbook = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise ImportFormatError(notifications.SHEET_INVALID) from exc
    if workbook.nsheets == 0:
        raise ImportFormatError(notifications.SHEET_INVALID)
    sheet = workbook.sheet_by_index(0)
    if sheet.nrows == 0:
        return [], []
    headers = [_cell_text(sheet.cell_value(0, col)) for col in range(sheet.ncols)]
    rows: List[List[str]] = []
    for row_index in range(1, sheet.nrows):
        row: List[str] = []
        for col_index in range(sheet.ncols):
            cell = sheet.cell(row_index, col_index)
            if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                row.append("")
            else:
                row.append(_cell_text(cell.value))
        rows.append(row)
    return headers, _keep_rows(rows)


__all__ = [
    "PlainStyle",
    "Sheet",
    "SheetRow",
    "StyledStyle",
    "build_sheets",
    "records_from_spreadsheet",
    "records_to_xlsx",
    "style_for",
]
