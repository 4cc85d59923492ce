from __future__ import annotations

from contact_ingest.domain.analysis.rules import (
    DIGIT_RE,
    HEADER_SIGNAL_THRESHOLD,
    LETTER_RE,
    PREVIEW_ROWS,
    SIGNAL_EMAIL,
    SIGNAL_MIXED,
    SIGNAL_NUMBER,
    SIGNAL_WORD,
    SYNTHETIC_COLUMN,
)
from contact_ingest.domain.models import Grid, HeaderResult, Row


def cell_signal(cell: str) -> float:
    value = (cell or "").strip()
    if not value:
        return 0.0
    if "@" in value:
        return SIGNAL_EMAIL
    has_letters = LETTER_RE.search(value) is not None
    has_digits = DIGIT_RE.search(value) is not None
    if has_letters and not has_digits:
        return SIGNAL_WORD
    if has_digits and not has_letters:
        return SIGNAL_NUMBER
    return SIGNAL_MIXED


def header_signal(cells: Row) -> float:
    return sum(cell_signal(cell) for cell in cells or [])


def is_likely_header(cells: Row) -> bool:
    """
    Назначение:
        Решает, похожа ли первая строка на заголовок.

    Алгоритм:
        - '@' -> -1; только буквы -> +2; только цифры -> -1; смешанное -> +0.5; пустое -> 0.
        - Сумма >= HEADER_SIGNAL_THRESHOLD -> заголовок.
    """
    if not cells:
        return False
    return header_signal(cells) >= HEADER_SIGNAL_THRESHOLD


def synthetic_name(index: int) -> str:
    return SYNTHETIC_COLUMN.format(index=index + 1)


def sanitize_header_name(name: str, index: int) -> str:
    base = " ".join((name or "").split())
    return base or synthetic_name(index)


def make_unique_names(names: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        candidate = name
        suffix = 2
        while candidate in seen:
            candidate = f"{name} ({suffix})"
            suffix += 1
        seen.add(candidate)
        unique.append(candidate)
    return unique


def fit_row(row: Row, width: int) -> Row:
    """
    Назначение:
        Обрезает/дополняет строку '' до ширины заголовка.
    """
    fitted = list(row[:width])
    fitted.extend([""] * (width - len(fitted)))
    return fitted


def build_header(grid: Grid) -> HeaderResult:
    """
    Назначение:
        Отделяет заголовок от тела и строит превью для подтверждения оператором.

    Поведение:
        - Заголовок найден: имена из первой строки (пробелы схлопнуты, пустые -> 'Column N',
          дубли получают ' (2)', ' (3)'), тело = остальные строки.
        - Заголовка нет: 'Column 1'..'Column N', N = максимальная длина строки во всём Grid;
          тело = все строки без изменений.
        - Grid из одной строки заголовка не имеет: строка уходит в тело.
        - Пустой Grid: has_header=False и всё пустое.
    """
    rows = grid or []
    first = rows[0] if rows else []
    has_header = len(rows) > 1 and is_likely_header(first)
    if has_header:
        headers = make_unique_names([sanitize_header_name(cell, idx) for idx, cell in enumerate(first)])
        body = rows[1:]
    else:
        width = max((len(row) for row in rows), default=0)
        headers = [synthetic_name(idx) for idx in range(width)]
        body = rows

    preview = [fit_row(row, len(headers)) for row in body[:PREVIEW_ROWS]]
    return HeaderResult(
        has_header=has_header,
        headers=headers,
        body_rows=list(body),
        preview=preview,
        total_rows=len(body),
    )
