from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from contact_ingest import __version__
from contact_ingest.domain.reporting.collector import ReportCollector, asdict_report


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> ReportCollector:
    report = ReportCollector(run_id=runId, command=command)
    report.set_meta(app_version=__version__)
    report.set_context("config", {"sources": list(configSources)})
    return report


def finalizeReport(report: ReportCollector, durationMs: int, logFile: str | None, reportDir: str) -> None:
    report.set_context("runtime", {"log_file": logFile, "report_dir": reportDir})
    report.finish(duration_ms=durationMs)


def writeJsonFile(path: str, data: Any) -> str:
    """
    Назначение:
        Пишет JSON-артефакт (анализ, контакты, записи, отчёт).

    Поведение:
        - Запись атомарна: временный файл рядом, затем os.replace.
        - Не-ASCII (имена, города) пишется как есть, UTF-8.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f".{target.name}.tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, target)
    return str(target)


def writeReportJson(report: ReportCollector, reportDir: str, fileBaseName: str) -> str:
    return writeJsonFile(str(Path(reportDir) / f"{fileBaseName}.json"), asdict_report(report.build()))
