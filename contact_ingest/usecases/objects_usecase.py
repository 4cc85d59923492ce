from __future__ import annotations

import logging

from contact_ingest.domain.models import Analysis
from contact_ingest.domain.reporting.collector import ReportCollector
from contact_ingest.domain.transform.rows_to_objects import make_unique_keys, rows_to_objects
from contact_ingest.infra.logging.setup import logEvent


class ObjectsUseCase:
    """
    Назначение/ответственность:
        Проекция тела таблицы в плоские записи с уникальными ключами (для смежных импортов).
    """

    def run(
        self,
        analysis: Analysis,
        logger: logging.Logger,
        run_id: str,
        report: ReportCollector,
    ) -> list[dict[str, str]]:
        keys = make_unique_keys(analysis.headers)
        records = rows_to_objects(analysis.headers, analysis.body_rows)
        report.set_context("objects", {"keys": keys, "records_total": len(records)})
        logEvent(logger, logging.INFO, run_id, "objects", f"objects done keys={len(keys)} records={len(records)}")
        return records
