from __future__ import annotations

import logging

from contact_ingest.domain.models import Analysis, ColumnMapping, Contact, RowRef
from contact_ingest.domain.reporting.collector import ReportCollector
from contact_ingest.domain.transform.contact_normalizer import ContactNormalizer
from contact_ingest.infra.logging.setup import logEvent


class NormalizeUseCase:
    """
    Назначение/ответственность:
        Финальная фаза: тело таблицы + подтверждённый маппинг -> список Contact.

    Взаимодействия:
        - Маппинг приходит извне (предложенный и отредактированный оператором).
        - Каждая строка попадает в отчёт как ACCEPTED или DROPPED (с учётом лимита items).
    """

    def __init__(self, country_code: str, store_accepted_rows: bool = True) -> None:
        self.normalizer = ContactNormalizer(country_code=country_code)
        self.store_accepted_rows = store_accepted_rows

    def run(
        self,
        analysis: Analysis,
        mapping: ColumnMapping,
        add_country_code: bool,
        logger: logging.Logger,
        run_id: str,
        report: ReportCollector,
    ) -> list[Contact]:
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "normalize",
            f"normalize start rows={analysis.total_rows} mapping={mapping.to_dict()} add_country_code={add_country_code}",
        )

        contacts: list[Contact] = []
        for idx, row in enumerate(analysis.body_rows):
            outcome = self.normalizer.normalize_row(row, mapping, analysis.headers, add_country_code)
            row_ref = RowRef(row_index=idx, row_id=f"row:{idx + 1}")
            if outcome.contact is None:
                report.record_row(row_ref=row_ref, accepted=False, payload={"cells": list(row)}, warnings=outcome.warnings)
                logEvent(
                    logger,
                    logging.DEBUG,
                    run_id,
                    "normalize",
                    f"row dropped row_id={row_ref.row_id} codes={[w.code for w in outcome.warnings]}",
                )
                continue
            contacts.append(outcome.contact)
            report.record_row(
                row_ref=row_ref,
                accepted=True,
                payload=outcome.contact.to_dict(),
                warnings=outcome.warnings,
                store=self.store_accepted_rows,
            )

        report.set_context(
            "normalize",
            {
                "mapping": mapping.to_dict(),
                "add_country_code": add_country_code,
                "country_code": self.normalizer.country_code,
                "contacts_total": len(contacts),
            },
        )
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "normalize",
            f"normalize done rows_total={analysis.total_rows} contacts={len(contacts)} "
            f"dropped={analysis.total_rows - len(contacts)}",
        )
        return contacts
