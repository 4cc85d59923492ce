from __future__ import annotations

import re
import unicodedata

from contact_ingest.domain.models import Grid

_DISALLOWED_RE = re.compile(r"[^a-z0-9\s_]+")
_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORES_RE = re.compile(r"_+")


def keyify(header: str, index: int) -> str:
    """
    Назначение:
        Машинный ключ из текста заголовка.

    Алгоритм:
        - NFD + удаление диакритики, нижний регистр, trim.
        - Удаление символов вне [a-z0-9 _] ('E-mail' -> 'email').
        - Пробелы -> '_', схлопывание '_' и обрезка по краям.
        - Пустой результат -> 'col_{index + 1}'.
    """
    decomposed = unicodedata.normalize("NFD", header or "")
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower().strip()
    base = _DISALLOWED_RE.sub("", base)
    base = _WHITESPACE_RE.sub("_", base)
    base = _UNDERSCORES_RE.sub("_", base).strip("_")
    return base or f"col_{index + 1}"


def make_unique_keys(headers: list[str]) -> list[str]:
    """
    Назначение:
        Уникальные ключи для всех заголовков.

    Поведение:
        - Первое вхождение сохраняет ключ без суффикса.
        - Повторы получают _2, _3, ... по порядку; занятые суффиксы пропускаются.
    """
    used: set[str] = set()
    occurrences: dict[str, int] = {}
    keys: list[str] = []
    for idx, header in enumerate(headers or []):
        base = keyify(header, idx)
        count = occurrences.get(base, 0) + 1
        occurrences[base] = count
        key = base if count == 1 else f"{base}_{count}"
        while key in used:
            count += 1
            key = f"{base}_{count}"
        occurrences[base] = count
        used.add(key)
        keys.append(key)
    return keys


def rows_to_objects(headers: list[str], body_rows: Grid) -> list[dict[str, str]]:
    """
    Назначение:
        Плоская проекция строк в словари по ключам заголовка; короткие строки дополняются ''.
    """
    keys = make_unique_keys(headers)
    records: list[dict[str, str]] = []
    for row in body_rows or []:
        cells = row or []
        records.append({key: (cells[idx] if idx < len(cells) and cells[idx] is not None else "") for idx, key in enumerate(keys)})
    return records
