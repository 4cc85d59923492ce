from __future__ import annotations

from dataclasses import dataclass

from contact_ingest.domain.exceptions import FormatError

BOM = "\ufeff"


@dataclass(frozen=True)
class DecodedText:
    """
    Назначение:
        Текст источника после декодирования байтов и нормализации переводов строк.
    """

    text: str
    encoding: str
    used_fallback: bool


def normalize_text(text: str) -> str:
    """
    Назначение:
        Убирает BOM в начале и приводит переводы строк к '\\n'.
    """
    if text.startswith(BOM):
        text = text[len(BOM):]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def decode_bytes(data: bytes, encoding: str = "utf-8", fallback_encoding: str | None = "cp1252") -> DecodedText:
    """
    Назначение:
        Декодирует байты текстового источника.

    Поведение:
        - Сначала пробует encoding.
        - При UnicodeDecodeError переходит на fallback_encoding; неизвестные ему байты заменяются.
        - Без fallback_encoding ошибка декодирования становится FormatError.
    """
    try:
        return DecodedText(text=normalize_text(data.decode(encoding)), encoding=encoding, used_fallback=False)
    except UnicodeDecodeError as exc:
        if not fallback_encoding:
            raise FormatError(source_format="csv", reason=f"not valid {encoding}: {exc}") from exc
    text = data.decode(fallback_encoding, errors="replace")
    return DecodedText(text=normalize_text(text), encoding=fallback_encoding, used_fallback=True)


def is_blank_row(row: list[str]) -> bool:
    return all(cell.strip() == "" for cell in row)
