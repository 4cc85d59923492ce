from __future__ import annotations

import csv
import io

from contact_ingest.domain.exceptions import FormatError
from contact_ingest.domain.models import Grid
from contact_ingest.infra.sources.text_utils import is_blank_row, normalize_text


def tokenize(text: str, delimiter: str) -> Grid:
    """
    Назначение:
        Разбирает текст с разделителями в Grid с учётом кавычек.

    Входные данные:
        text: str
            Текст источника (BOM и '\\r' убираются здесь же, повторная нормализация безопасна).
        delimiter: str
            Разделитель полей.

    Выходные данные:
        Grid
            Строки с обрезанными ячейками; полностью пустые строки отброшены.

    Поведение:
        - Поле в кавычках может содержать разделитель и переводы строк.
        - Пробелы перед открывающей кавычкой не мешают ей ('a; "b; c"' -> ['a', 'b; c']).
        - '""' внутри кавычек превращается в '"'.
        - Длина поля ограничена только длиной текста (лимит csv поднимается на время разбора).
        - csv.Error превращается в FormatError.
    """
    text = normalize_text(text)
    reader = csv.reader(
        io.StringIO(text),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        skipinitialspace=True,
    )
    grid: Grid = []
    previous_limit = csv.field_size_limit(max(csv.field_size_limit(), len(text) + 1))
    try:
        for raw_row in reader:
            if not raw_row:
                continue
            row = [cell.strip() for cell in raw_row]
            if is_blank_row(row):
                continue
            grid.append(row)
    except csv.Error as exc:
        raise FormatError(source_format="csv", reason=f"line {reader.line_num}: {exc}") from exc
    finally:
        csv.field_size_limit(previous_limit)
    return grid
