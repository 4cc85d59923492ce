from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from contact_ingest.domain.exceptions import FormatError
from contact_ingest.domain.models import Grid
from contact_ingest.infra.sources.csv_tokenizer import tokenize
from contact_ingest.infra.sources.delimiter import detect_delimiter
from contact_ingest.infra.sources.spreadsheet_reader import read_xls, read_xlsx
from contact_ingest.infra.sources.text_utils import decode_bytes

SPREADSHEET_READERS = {
    ".xlsx": read_xlsx,
    ".xls": read_xls,
}


@dataclass(frozen=True)
class ExtractedGrid:
    """
    Назначение:
        Grid источника и сведения о том, как он был получен.

    Поля:
        source_format: 'csv' | 'xlsx' | 'xls'
        delimiter: выбранный разделитель (только для текстового пути)
        encoding: использованная кодировка (только для текстового пути)
        used_fallback_encoding: текст пришлось декодировать запасной кодировкой
    """

    grid: Grid
    source_format: str
    delimiter: str | None = None
    encoding: str | None = None
    used_fallback_encoding: bool = False


def source_format_for(filename: str) -> str:
    """
    Назначение:
        Формат источника определяется только по суффиксу имени файла.
    """
    suffix = Path(filename or "").suffix.lower()
    if suffix in SPREADSHEET_READERS:
        return suffix[1:]
    return "csv"


def extract_grid(
    data: bytes,
    filename: str,
    encoding: str = "utf-8",
    fallback_encoding: str | None = "cp1252",
) -> ExtractedGrid:
    """
    Назначение:
        Декодирует байты источника в Grid, скрывая различия форматов.

    Выходные данные:
        ExtractedGrid

    Поведение:
        - .xlsx/.xls читаются как книга Excel (только первый лист).
        - Всё остальное: текст с автоопределением разделителя.
        - Битая книга -> FormatError.
    """
    source_format = source_format_for(filename)
    reader = SPREADSHEET_READERS.get(f".{source_format}")
    if reader is not None:
        return ExtractedGrid(grid=reader(data), source_format=source_format)

    decoded = decode_bytes(data, encoding=encoding, fallback_encoding=fallback_encoding)
    delimiter = detect_delimiter(decoded.text)
    return ExtractedGrid(
        grid=tokenize(decoded.text, delimiter),
        source_format=source_format,
        delimiter=delimiter,
        encoding=decoded.encoding,
        used_fallback_encoding=decoded.used_fallback,
    )


def read_source_file(
    path: str,
    encoding: str = "utf-8",
    fallback_encoding: str | None = "cp1252",
) -> ExtractedGrid:
    """
    Назначение:
        Единственное блокирующее чтение байтов файла + extract_grid.
    """
    data = Path(path).read_bytes()
    try:
        return extract_grid(data, Path(path).name, encoding=encoding, fallback_encoding=fallback_encoding)
    except FormatError as exc:
        exc.path = path
        raise
