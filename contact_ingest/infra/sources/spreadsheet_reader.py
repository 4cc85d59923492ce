from __future__ import annotations

import io
from datetime import date, datetime, time
from typing import Any, Iterable

import xlrd
from openpyxl import load_workbook

from contact_ingest.domain.exceptions import FormatError
from contact_ingest.domain.models import Grid, Row
from contact_ingest.infra.sources.text_utils import is_blank_row


def display_text(value: Any) -> str:
    """
    Назначение:
        Приводит значение ячейки к строке в том виде, в каком её видит пользователь.

    Поведение:
        - None -> ''
        - bool -> 'TRUE'/'FALSE'
        - целое число во float (11999998888.0) -> без '.0'
        - datetime без времени -> дата ISO, иначе дата-время ISO
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _finish_row(values: Iterable[str]) -> Row:
    row = list(values)
    while row and row[-1] == "":
        row.pop()
    return row


def _collect(rows: Iterable[Row]) -> Grid:
    return [row for row in rows if row and not is_blank_row(row)]


def read_xlsx(data: bytes) -> Grid:
    """
    Назначение:
        Читает первый лист .xlsx (openpyxl) в Grid.
    """
    try:
        workbook = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise FormatError(source_format="xlsx", reason=str(exc) or exc.__class__.__name__) from exc
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return _collect(
            _finish_row(display_text(value) for value in values)
            for values in sheet.iter_rows(values_only=True)
        )
    except Exception as exc:
        raise FormatError(source_format="xlsx", reason=str(exc) or exc.__class__.__name__) from exc
    finally:
        workbook.close()


def _xls_cell_text(cell: xlrd.sheet.Cell, datemode: int) -> str:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return ""
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return display_text(bool(cell.value))
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERR")
    if cell.ctype == xlrd.XL_CELL_DATE:
        return display_text(xlrd.xldate_as_datetime(cell.value, datemode))
    return display_text(cell.value)


def read_xls(data: bytes) -> Grid:
    """
    Назначение:
        Читает первый лист старого .xls (xlrd) в Grid.
    """
    try:
        book = xlrd.open_workbook(file_contents=data, on_demand=True)
    except Exception as exc:
        raise FormatError(source_format="xls", reason=str(exc) or exc.__class__.__name__) from exc
    try:
        if book.nsheets == 0:
            return []
        sheet = book.sheet_by_index(0)
        return _collect(
            _finish_row(_xls_cell_text(cell, book.datemode) for cell in sheet.row(idx))
            for idx in range(sheet.nrows)
        )
    except Exception as exc:
        raise FormatError(source_format="xls", reason=str(exc) or exc.__class__.__name__) from exc
    finally:
        book.release_resources()
