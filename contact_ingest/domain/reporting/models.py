from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from contact_ingest.domain.models import DiagnosticStage, RowRef


@dataclass
class ReportMeta:
    """
    Назначение:
        Паспорт запуска: команда, входной файл и как он был прочитан.
    """

    run_id: str
    command: str
    started_at: str
    source_path: str | None = None
    source_format: str | None = None
    finished_at: str | None = None
    duration_ms: int | None = None
    items_limit: int | None = None
    items_truncated: bool = False
    app_version: str | None = None


@dataclass
class ReportSummary:
    """
    Назначение:
        Счётчики строк тела и диагностики.

    Поля:
        rows_accepted: строки, давшие Contact
        rows_dropped: строки без имени и без валидного телефона
        by_stage / by_code: разбивка диагностики для быстрого разбора файла оператором
    """

    rows_total: int = 0
    rows_accepted: int = 0
    rows_dropped: int = 0
    rows_with_warnings: int = 0
    errors_total: int = 0
    warnings_total: int = 0
    by_stage: dict[str, dict[str, int]] = field(default_factory=dict)
    by_code: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportDiagnostic:
    severity: str
    stage: DiagnosticStage
    code: str
    field: str | None
    message: str


@dataclass
class RowReport:
    """
    Назначение:
        Результат одной строки тела: ACCEPTED с контактом или DROPPED с исходными ячейками.
    """

    status: str
    row_ref: RowRef
    payload: Mapping[str, Any] | None = None
    diagnostics: list[ReportDiagnostic] = field(default_factory=list)


@dataclass
class ReportEnvelope:
    status: str
    meta: ReportMeta
    summary: ReportSummary
    rows: list[RowReport]
    file_diagnostics: list[ReportDiagnostic] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)
