from __future__ import annotations

from contact_ingest.domain.models import DiagnosticItem, DiagnosticStage, RowRef
from contact_ingest.domain.reporting.collector import (
    ROW_ACCEPTED,
    RUN_FAILED,
    RUN_PARTIAL,
    RUN_SUCCESS,
    ReportCollector,
    asdict_report,
)


def _warning(code: str) -> DiagnosticItem:
    return DiagnosticItem(stage=DiagnosticStage.NORMALIZE, code=code, field=None, message=code.lower())


def test_empty_run_is_success():
    report = ReportCollector(run_id="r", command="analyze")
    assert report.status() == RUN_SUCCESS


def test_dropped_rows_make_run_partial():
    report = ReportCollector(run_id="r", command="normalize")
    report.record_row(row_ref=RowRef(0, "row:1"), accepted=True, payload={"name": "Ana"})
    report.record_row(row_ref=RowRef(1, "row:2"), accepted=False, warnings=[_warning("ROW_WITHOUT_CONTACT")])
    assert report.status() == RUN_PARTIAL
    assert report.summary.by_stage == {"NORMALIZE": {"errors_total": 0, "warnings_total": 1}}


def test_no_accepted_rows_is_failed():
    report = ReportCollector(run_id="r", command="normalize")
    report.record_row(row_ref=RowRef(0, "row:1"), accepted=False)
    assert report.status() == RUN_FAILED


def test_file_failure_is_failed():
    report = ReportCollector(run_id="r", command="analyze")
    report.record_failure(DiagnosticStage.EXTRACT, "FORMAT_ERROR", "broken")
    data = asdict_report(report.build())
    assert data["status"] == RUN_FAILED
    assert data["summary"]["errors_total"] == 1
    assert data["file_diagnostics"][0] == {
        "severity": "error",
        "stage": "EXTRACT",
        "code": "FORMAT_ERROR",
        "field": None,
        "message": "broken",
    }


def test_unstored_rows_are_still_counted():
    report = ReportCollector(run_id="r", command="normalize")
    report.record_row(row_ref=RowRef(0, "row:1"), accepted=True, store=False)
    assert report.summary.rows_accepted == 1
    assert report.rows == []
    assert not report.meta.items_truncated
    report.record_row(row_ref=RowRef(1, "row:2"), accepted=True)
    assert [row.status for row in report.rows] == [ROW_ACCEPTED]
