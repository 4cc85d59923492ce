from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

Cell = str
Row = list[str]
Grid = list[Row]


class DiagnosticStage(str, Enum):
    """
    Назначение:
        Источник диагностического события в пайплайне импорта.
    """

    EXTRACT = "EXTRACT"
    HEADER = "HEADER"
    ROLES = "ROLES"
    NORMALIZE = "NORMALIZE"


@dataclass
class DiagnosticItem:
    """
    Назначение:
        Диагностическое сообщение пайплайна (ошибка/предупреждение).
    """

    stage: DiagnosticStage
    code: str
    field: str | None
    message: str


@dataclass(frozen=True)
class RowRef:
    """
    Назначение:
        Ссылка на строку тела таблицы (после отделения заголовка).
    """

    row_index: int
    row_id: str


@dataclass(frozen=True)
class ColumnMapping:
    """
    Назначение:
        Частичное назначение ролей колонкам: name/phone + произвольные extra-индексы.

    Инварианты/гарантии:
        - Индексы вне диапазона не считаются ошибкой: потребители трактуют их как «нет значения».
        - Экземпляр неизменяем; правки оператора создают новый объект через with_overrides().
    """

    name: int | None = None
    phone: int | None = None
    extras: tuple[int, ...] = ()

    def with_overrides(
        self,
        *,
        name: int | None = None,
        phone: int | None = None,
        extras: tuple[int, ...] | list[int] | None = None,
    ) -> "ColumnMapping":
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if phone is not None:
            changes["phone"] = phone
        if extras is not None:
            changes["extras"] = tuple(extras)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.phone is not None:
            data["phone"] = self.phone
        if self.extras:
            data["extras"] = list(self.extras)
        return data


@dataclass(frozen=True)
class Contact:
    """
    Назначение:
        Типизированная контактная запись, полученная из строки таблицы.

    Инварианты/гарантии:
        - phone (если есть) содержит только цифры и не короче минимальной длины.
        - Есть непустое name или валидный phone.
        - extras присутствует только если непустой.
    """

    name: str | None = None
    phone: str | None = None
    extras: Mapping[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.phone is not None:
            data["phone"] = self.phone
        if self.extras:
            data["extras"] = dict(self.extras)
        return data


@dataclass(frozen=True)
class HeaderResult:
    """
    Назначение:
        Результат классификации первой строки: заголовок, тело и превью для оператора.
    """

    has_header: bool
    headers: list[str]
    body_rows: Grid
    preview: Grid
    total_rows: int


@dataclass(frozen=True)
class Analysis:
    """
    Назначение:
        Итог фазы анализа файла, который показывается оператору для подтверждения маппинга.
    """

    headers: list[str]
    preview: Grid
    total_rows: int
    body_rows: Grid
    mapping: ColumnMapping
    has_header: bool
    source_format: str
    delimiter: str | None = None
    warnings: list[DiagnosticItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        suggested = self.mapping.to_dict()
        suggested.pop("extras", None)
        return {
            "headers": list(self.headers),
            "preview": [list(row) for row in self.preview],
            "totalRows": self.total_rows,
            "bodyRows": [list(row) for row in self.body_rows],
            "mapping": suggested,
            "hasHeader": self.has_header,
            "sourceFormat": self.source_format,
            "delimiter": self.delimiter,
        }
