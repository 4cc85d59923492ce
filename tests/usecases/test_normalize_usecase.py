from __future__ import annotations

import logging

from contact_ingest.domain.models import ColumnMapping
from contact_ingest.domain.reporting.collector import ROW_ACCEPTED, ROW_DROPPED, ReportCollector, asdict_report
from contact_ingest.infra.sources.row_extractor import extract_grid
from contact_ingest.usecases.analyze_usecase import build_analysis
from contact_ingest.usecases.normalize_usecase import NormalizeUseCase
from contact_ingest.usecases.objects_usecase import ObjectsUseCase

logger = logging.getLogger("contactIngest.tests.normalize")

CSV = (
    "Nome,Telefone,Cidade\n"
    "Ana,(11) 99999-8888,Recife\n"
    ",123,Natal\n"
    "Caio,5511988887777,\n"
)


def _analysis():
    return build_analysis(extract_grid(CSV.encode("utf-8"), "lista.csv"))


def test_contacts_and_report_items():
    analysis = _analysis()
    report = ReportCollector(run_id="run-1", command="normalize")
    mapping = analysis.mapping.with_overrides(extras=[2])

    contacts = NormalizeUseCase(country_code="55").run(
        analysis=analysis,
        mapping=mapping,
        add_country_code=True,
        logger=logger,
        run_id="run-1",
        report=report,
    )

    assert [c.to_dict() for c in contacts] == [
        {"name": "Ana", "phone": "5511999998888", "extras": {"Cidade": "Recife"}},
        {"name": "Caio", "phone": "5511988887777"},
    ]
    assert report.summary.rows_total == 3
    assert report.summary.rows_accepted == 2
    assert report.summary.rows_dropped == 1
    assert [row.status for row in report.rows] == [ROW_ACCEPTED, ROW_DROPPED, ROW_ACCEPTED]
    assert report.rows[1].row_ref.row_id == "row:2"
    assert report.context["normalize"]["contacts_total"] == 2

    data = asdict_report(report.build())
    assert data["status"] == "PARTIAL"
    assert data["rows"][1]["diagnostics"][0]["stage"] == "NORMALIZE"
    assert data["summary"]["by_code"] == {"PHONE_TOO_SHORT": 1, "ROW_WITHOUT_CONTACT": 1}


def test_items_limit_truncates_report():
    analysis = _analysis()
    report = ReportCollector(run_id="run-2", command="normalize")
    report.set_meta(items_limit=1)
    NormalizeUseCase(country_code="55").run(
        analysis=analysis,
        mapping=ColumnMapping(name=0, phone=1),
        add_country_code=False,
        logger=logger,
        run_id="run-2",
        report=report,
    )
    assert len(report.rows) == 1
    assert report.meta.items_truncated is True
    assert report.summary.rows_total == 3


def test_objects_usecase():
    analysis = _analysis()
    report = ReportCollector(run_id="run-3", command="objects")
    records = ObjectsUseCase().run(analysis=analysis, logger=logger, run_id="run-3", report=report)
    assert records[0] == {"nome": "Ana", "telefone": "(11) 99999-8888", "cidade": "Recife"}
    assert report.context["objects"]["keys"] == ["nome", "telefone", "cidade"]
