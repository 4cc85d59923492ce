from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FormatError(Exception):
    """
    Назначение:
        Файл не удалось декодировать в таблицу (битая книга Excel, испорченный CSV).

    Инварианты/гарантии:
        - Единственная «жёсткая» ошибка пайплайна: пробрасывается вызывающему, не глотается.
    """

    source_format: str
    reason: str
    path: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.reason)

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        return f"Cannot read {self.source_format} source{where}: {self.reason}"


@dataclass
class MappingFileError(Exception):
    """
    Назначение:
        Файл маппинга, отредактированный оператором, не читается или имеет неверную структуру.
    """

    path: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(self.reason)

    def __str__(self) -> str:
        return f"Invalid mapping file {self.path}: {self.reason}"


__all__ = ["FormatError", "MappingFileError"]
