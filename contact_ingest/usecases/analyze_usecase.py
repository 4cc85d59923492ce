from __future__ import annotations

import logging

from contact_ingest.domain.analysis.header import build_header
from contact_ingest.domain.analysis.roles import score_columns, suggest_mapping
from contact_ingest.domain.analysis.rules import ROLE_NAME, ROLE_PHONE
from contact_ingest.domain.models import Analysis, DiagnosticItem, DiagnosticStage
from contact_ingest.domain.reporting.collector import ReportCollector
from contact_ingest.infra.logging.setup import logEvent
from contact_ingest.infra.sources.row_extractor import ExtractedGrid


def build_analysis(extracted: ExtractedGrid) -> Analysis:
    """
    Назначение:
        Grid -> заголовок/тело/превью -> предложенный маппинг.
    """
    header = build_header(extracted.grid)
    mapping = suggest_mapping(header.headers, header.body_rows)
    warnings: list[DiagnosticItem] = []
    if extracted.used_fallback_encoding:
        warnings.append(
            DiagnosticItem(
                stage=DiagnosticStage.EXTRACT,
                code="FALLBACK_ENCODING",
                field=None,
                message=f"source decoded as {extracted.encoding}",
            )
        )
    for role, index in ((ROLE_PHONE, mapping.phone), (ROLE_NAME, mapping.name)):
        if index is None and header.headers:
            warnings.append(
                DiagnosticItem(
                    stage=DiagnosticStage.ROLES,
                    code="ROLE_NOT_DETECTED",
                    field=role,
                    message=f"no column qualifies for role '{role}'",
                )
            )
    return Analysis(
        headers=header.headers,
        preview=header.preview,
        total_rows=header.total_rows,
        body_rows=header.body_rows,
        mapping=mapping,
        has_header=header.has_header,
        source_format=extracted.source_format,
        delimiter=extracted.delimiter,
        warnings=warnings,
    )


class AnalyzeUseCase:
    """
    Назначение/ответственность:
        Фаза анализа: строит Analysis для подтверждения маппинга оператором и пишет сводку в отчёт.
    """

    def run(
        self,
        extracted: ExtractedGrid,
        logger: logging.Logger,
        run_id: str,
        report: ReportCollector,
    ) -> Analysis:
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "extract",
            f"extract done format={extracted.source_format} rows={len(extracted.grid)} "
            f"delimiter={extracted.delimiter!r} encoding={extracted.encoding}",
        )

        analysis = build_analysis(extracted)
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "header",
            f"header has_header={analysis.has_header} columns={len(analysis.headers)} body_rows={analysis.total_rows}",
        )
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "roles",
            f"suggested mapping name={analysis.mapping.name} phone={analysis.mapping.phone}",
        )
        for warning in analysis.warnings:
            logEvent(logger, logging.WARNING, run_id, warning.stage.value.lower(), f"{warning.code}: {warning.message}")

        report.set_meta(source_format=analysis.source_format)
        report.record_file_diagnostics(warnings=analysis.warnings)
        report.set_context(
            "analysis",
            {
                "has_header": analysis.has_header,
                "headers": analysis.headers,
                "total_rows": analysis.total_rows,
                "delimiter": analysis.delimiter,
                "encoding": extracted.encoding,
                "mapping": analysis.mapping.to_dict(),
                "column_scores": [
                    {
                        "index": score.index,
                        "header": score.header,
                        ROLE_PHONE: round(score.combined(ROLE_PHONE), 4),
                        ROLE_NAME: round(score.combined(ROLE_NAME), 4),
                    }
                    for score in score_columns(analysis.headers, analysis.body_rows)
                ],
            },
        )
        return analysis
