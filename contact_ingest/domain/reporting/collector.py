from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable, Mapping

from contact_ingest.domain.models import DiagnosticItem, DiagnosticStage, RowRef
from contact_ingest.domain.reporting.models import (
    ReportDiagnostic,
    ReportEnvelope,
    ReportMeta,
    ReportSummary,
    RowReport,
)

ROW_ACCEPTED = "ACCEPTED"
ROW_DROPPED = "DROPPED"

RUN_SUCCESS = "SUCCESS"
RUN_PARTIAL = "PARTIAL"
RUN_FAILED = "FAILED"


def now_iso() -> str:
    return datetime.now().astimezone().isoformat()


class ReportCollector:
    """
    Назначение/ответственность:
        Собирает отчёт одного запуска импорта: диагностику уровня файла,
        исход каждой строки тела и произвольный контекст стадий.

    Инварианты/гарантии:
        - Счётчики summary учитывают все строки, даже если rows обрезан по items_limit.
        - Статус запуска:
            FAILED: ни одной принятой строки при ошибке файла или непустом теле;
            PARTIAL: есть ошибки или отброшенные строки;
            SUCCESS: иначе.
    """

    def __init__(self, run_id: str, command: str, started_at: str | None = None) -> None:
        self.meta = ReportMeta(run_id=run_id, command=command, started_at=started_at or now_iso())
        self.summary = ReportSummary()
        self.rows: list[RowReport] = []
        self.file_diagnostics: list[ReportDiagnostic] = []
        self.context: dict[str, Any] = {}

    def set_meta(
        self,
        *,
        source_path: str | None = None,
        source_format: str | None = None,
        items_limit: int | None = None,
        app_version: str | None = None,
    ) -> None:
        updates = {
            "source_path": source_path,
            "source_format": source_format,
            "items_limit": items_limit,
            "app_version": app_version,
        }
        for name, value in updates.items():
            if value is not None:
                setattr(self.meta, name, value)

    def set_context(self, name: str, value: dict[str, Any]) -> None:
        self.context[name] = value

    def record_file_diagnostics(
        self,
        errors: Iterable[DiagnosticItem] = (),
        warnings: Iterable[DiagnosticItem] = (),
    ) -> None:
        """
        Назначение:
            Диагностика, не привязанная к строке (запасная кодировка, нераспознанная роль, битый файл).
        """
        diagnostics = _to_report(errors, warnings)
        self._count(diagnostics)
        self.file_diagnostics.extend(diagnostics)

    def record_failure(self, stage: DiagnosticStage, code: str, message: str) -> None:
        self.record_file_diagnostics(errors=[DiagnosticItem(stage=stage, code=code, field=None, message=message)])

    def record_row(
        self,
        *,
        row_ref: RowRef,
        accepted: bool,
        payload: Mapping[str, Any] | None = None,
        warnings: Iterable[DiagnosticItem] = (),
        store: bool = True,
    ) -> None:
        """
        Назначение:
            Фиксирует исход одной строки тела.

        Поведение:
            - store=False учитывает строку только в summary.
            - После items_limit сохранённых строк остальные не попадают в rows, выставляется items_truncated.
        """
        diagnostics = _to_report((), warnings)
        self.summary.rows_total += 1
        if accepted:
            self.summary.rows_accepted += 1
        else:
            self.summary.rows_dropped += 1
        if diagnostics:
            self.summary.rows_with_warnings += 1
        self._count(diagnostics)

        if not store:
            return
        limit = self.meta.items_limit
        if limit is not None and len(self.rows) >= limit:
            self.meta.items_truncated = True
            return
        self.rows.append(
            RowReport(
                status=ROW_ACCEPTED if accepted else ROW_DROPPED,
                row_ref=row_ref,
                payload=payload,
                diagnostics=diagnostics,
            )
        )

    def finish(self, duration_ms: int | None = None) -> None:
        self.meta.finished_at = now_iso()
        self.meta.duration_ms = duration_ms

    def status(self) -> str:
        summary = self.summary
        if not summary.rows_accepted and (summary.errors_total or summary.rows_total):
            return RUN_FAILED
        if summary.errors_total or summary.rows_dropped:
            return RUN_PARTIAL
        return RUN_SUCCESS

    def build(self) -> ReportEnvelope:
        return ReportEnvelope(
            status=self.status(),
            meta=self.meta,
            summary=self.summary,
            rows=self.rows,
            file_diagnostics=self.file_diagnostics,
            context=self.context,
        )

    def _count(self, diagnostics: list[ReportDiagnostic]) -> None:
        for diag in diagnostics:
            counter = "errors_total" if diag.severity == "error" else "warnings_total"
            setattr(self.summary, counter, getattr(self.summary, counter) + 1)
            stage = self.summary.by_stage.setdefault(diag.stage.value, {"errors_total": 0, "warnings_total": 0})
            stage[counter] += 1
            self.summary.by_code[diag.code] = self.summary.by_code.get(diag.code, 0) + 1


def _to_report(errors: Iterable[DiagnosticItem], warnings: Iterable[DiagnosticItem]) -> list[ReportDiagnostic]:
    return [
        ReportDiagnostic(severity=severity, stage=item.stage, code=item.code, field=item.field, message=item.message)
        for severity, items in (("error", errors), ("warning", warnings))
        for item in items
    ]


def _diagnostic_dict(diag: ReportDiagnostic) -> dict[str, Any]:
    return {**asdict(diag), "stage": diag.stage.value}


def asdict_report(envelope: ReportEnvelope) -> dict[str, Any]:
    """
    Назначение:
        Сериализация отчёта в JSON-совместимый dict.
    """
    return {
        "status": envelope.status,
        "meta": asdict(envelope.meta),
        "summary": asdict(envelope.summary),
        "file_diagnostics": [_diagnostic_dict(diag) for diag in envelope.file_diagnostics],
        "rows": [
            {
                "status": row.status,
                "row_ref": asdict(row.row_ref),
                "payload": dict(row.payload) if row.payload is not None else None,
                "diagnostics": [_diagnostic_dict(diag) for diag in row.diagnostics],
            }
            for row in envelope.rows
        ],
        "context": envelope.context,
    }
