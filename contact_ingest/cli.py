from __future__ import annotations

import logging
import sys
import time
import uuid
from pathlib import Path
from typing import List, Optional

import typer

from contact_ingest.config import Settings, loadSettings
from contact_ingest.domain.exceptions import FormatError, MappingFileError
from contact_ingest.domain.models import Analysis, ColumnMapping, DiagnosticStage
from contact_ingest.infra.artifacts.mapping_reader import readMappingFile
from contact_ingest.infra.artifacts.report_writer import (
    createEmptyReport,
    finalizeReport,
    writeJsonFile,
    writeReportJson,
)
from contact_ingest.infra.logging.setup import (
    LineLogStream,
    TeeStream,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
    mapLogLevel,
)
from contact_ingest.infra.sources.row_extractor import read_source_file
from contact_ingest.usecases.analyze_usecase import AnalyzeUseCase
from contact_ingest.usecases.normalize_usecase import NormalizeUseCase
from contact_ingest.usecases.objects_usecase import ObjectsUseCase

app = typer.Typer(no_args_is_help=True, add_completion=False)


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def requireSource(sourcePath: str | None) -> None:
    """
    Назначение:
        Проверка наличия входного файла (CSV/TXT/XLSX/XLS).

    Поведение:
        - Если путь не задан или файла нет — завершает процесс с exit code 2.
    """
    if not sourcePath:
        typer.echo("ERROR: --file is required", err=True)
        raise typer.Exit(code=2)

    p = Path(sourcePath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: source file not found: {sourcePath}", err=True)
        raise typer.Exit(code=2)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    typer.echo(
        f"run_id={runId} command={command} sources={sources} "
        f"log_level={settings.log_level} encoding={settings.encoding} "
        f"fallback_encoding={settings.fallback_encoding} country_code={settings.country_code}"
    )


def defaultArtifactPath(settings: Settings, kind: str, runId: str) -> str:
    return str(Path(settings.report_dir) / f"{kind}_{runId}.json")


def runWithReport(
    ctx: typer.Context,
    commandName: str,
    sourcePath: str | None,
    runner,
) -> None:
    """
    Назначение:
        Общий каркас запуска analyze/normalize/objects:
        лог-файл команды, отчёт, проверка входного файла, копия stdout/stderr в лог.
        Отчёт report_<command>_<runId>.json пишется всегда, в том числе при ошибке.

    Поведение:
        - runner(logger, report) возвращает exit code; ненулевой код завершает процесс.
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)
    report.set_meta(source_path=sourcePath, items_limit=settings.report_items_limit)

    originalStdout = sys.stdout
    originalStderr = sys.stderr

    sys.stdout = TeeStream(originalStdout, LineLogStream(logger, logging.INFO, runId, "stdout"))
    sys.stderr = TeeStream(originalStderr, LineLogStream(logger, logging.ERROR, runId, "stderr"))

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)

        try:
            requireSource(sourcePath)
        except typer.Exit:
            logEvent(logger, logging.ERROR, runId, "source", "Source file is missing or not accessible")
            report.record_failure(DiagnosticStage.EXTRACT, "SOURCE_NOT_FOUND", f"source file is missing: {sourcePath}")
            exitCode = 2
            return

        exitCode = runner(logger, report)

    finally:
        durationMs = int((time.monotonic() - startMonotonic) * 1000)
        finalizeReport(report=report, durationMs=durationMs, logFile=logFilePath, reportDir=settings.report_dir)
        reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")

        sys.stdout.flush()
        sys.stderr.flush()
        sys.stdout = originalStdout
        sys.stderr = originalStderr
        closeCommandLogger(logger)

        if exitCode:
            raise typer.Exit(code=exitCode)


def loadAnalysis(sourcePath: str, settings: Settings, logger, runId: str, report) -> Analysis:
    extracted = read_source_file(
        sourcePath,
        encoding=settings.encoding,
        fallback_encoding=settings.fallback_encoding,
    )
    return AnalyzeUseCase().run(extracted=extracted, logger=logger, run_id=runId, report=report)


def reportSourceError(logger, runId: str, report, exc: Exception) -> int:
    if isinstance(exc, FormatError):
        logEvent(logger, logging.ERROR, runId, "extract", f"Format error: {exc}")
        report.record_failure(DiagnosticStage.EXTRACT, "FORMAT_ERROR", str(exc))
        typer.echo(f"ERROR: {exc}", err=True)
    else:
        logEvent(logger, logging.ERROR, runId, "extract", f"Source read error: {exc}")
        report.record_failure(DiagnosticStage.EXTRACT, "SOURCE_READ_ERROR", str(exc))
        typer.echo(f"ERROR: source read error: {exc}", err=True)
    return 2


def runAnalyzeCommand(ctx: typer.Context, sourcePath: str | None, outPath: str | None) -> None:
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        try:
            analysis = loadAnalysis(sourcePath or "", settings, logger, runId, report)
        except (FormatError, OSError) as exc:
            return reportSourceError(logger, runId, report, exc)

        target = writeJsonFile(outPath or defaultArtifactPath(settings, "analysis", runId), analysis.to_dict())
        logEvent(logger, logging.INFO, runId, "analyze", f"Analysis written: {target}")
        typer.echo(
            f"has_header={analysis.has_header} columns={len(analysis.headers)} rows={analysis.total_rows} "
            f"mapping={analysis.mapping.to_dict()} analysis={target}"
        )
        return 0

    runWithReport(ctx=ctx, commandName="analyze", sourcePath=sourcePath, runner=execute)


def resolveMapping(
    suggested: ColumnMapping,
    mappingPath: str | None,
    nameCol: int | None,
    phoneCol: int | None,
    extraCols: list[int] | None,
) -> ColumnMapping:
    """
    Назначение:
        Итоговый маппинг: предложенный -> файл оператора (заменяет целиком) -> флаги CLI.
    """
    mapping = readMappingFile(mappingPath) if mappingPath else suggested
    return mapping.with_overrides(name=nameCol, phone=phoneCol, extras=extraCols or None)


def runNormalizeCommand(
    ctx: typer.Context,
    sourcePath: str | None,
    mappingPath: str | None,
    nameCol: int | None,
    phoneCol: int | None,
    extraCols: list[int] | None,
    addCountryCode: bool | None,
    outPath: str | None,
) -> None:
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    add_country_code = addCountryCode if addCountryCode is not None else settings.add_country_code

    def execute(logger, report) -> int:
        try:
            analysis = loadAnalysis(sourcePath or "", settings, logger, runId, report)
        except (FormatError, OSError) as exc:
            return reportSourceError(logger, runId, report, exc)

        try:
            mapping = resolveMapping(analysis.mapping, mappingPath, nameCol, phoneCol, extraCols)
        except (MappingFileError, OSError) as exc:
            logEvent(logger, logging.ERROR, runId, "mapping", f"Mapping error: {exc}")
            report.record_failure(DiagnosticStage.ROLES, "MAPPING_FILE_INVALID", str(exc))
            typer.echo(f"ERROR: {exc}", err=True)
            return 2

        usecase = NormalizeUseCase(country_code=settings.country_code)
        contacts = usecase.run(
            analysis=analysis,
            mapping=mapping,
            add_country_code=add_country_code,
            logger=logger,
            run_id=runId,
            report=report,
        )
        target = writeJsonFile(
            outPath or defaultArtifactPath(settings, "contacts", runId),
            [contact.to_dict() for contact in contacts],
        )
        logEvent(logger, logging.INFO, runId, "normalize", f"Contacts written: {target}")
        typer.echo(f"contacts={len(contacts)} skipped={analysis.total_rows - len(contacts)} out={target}")
        if analysis.total_rows > 0 and not contacts:
            typer.echo("ERROR: no contacts produced with the current mapping", err=True)
            return 1
        return 0

    runWithReport(ctx=ctx, commandName="normalize", sourcePath=sourcePath, runner=execute)


def runObjectsCommand(ctx: typer.Context, sourcePath: str | None, outPath: str | None) -> None:
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        try:
            analysis = loadAnalysis(sourcePath or "", settings, logger, runId, report)
        except (FormatError, OSError) as exc:
            return reportSourceError(logger, runId, report, exc)

        records = ObjectsUseCase().run(analysis=analysis, logger=logger, run_id=runId, report=report)
        target = writeJsonFile(outPath or defaultArtifactPath(settings, "objects", runId), records)
        typer.echo(f"records={len(records)} out={target}")
        return 0

    runWithReport(ctx=ctx, commandName="objects", sourcePath=sourcePath, runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports and artifacts."),
    encoding: str | None = typer.Option(None, "--encoding", help="Encoding of text sources"),
    fallbackEncoding: str | None = typer.Option(None, "--fallback-encoding", help="Encoding used when --encoding fails"),
    countryCode: str | None = typer.Option(None, "--country-code", help="Country code prepended to phones"),
    reportItemsLimit: int | None = typer.Option(None, "--report-items-limit", help="Limit report items stored"),
):
    """
    Назначение:
        Общие опции запуска: run_id (или новый uuid4), настройки CLI > ENV > config > defaults,
        каталоги логов и отчётов. Результат кладётся в ctx.obj для подкоманд.
    """
    if not runId:
        runId = str(uuid.uuid4())

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "encoding": encoding,
        "fallback_encoding": fallbackEncoding,
        "country_code": countryCode,
        "report_items_limit": reportItemsLimit,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
        mapLogLevel(loaded.settings.log_level)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
    }


@app.command("analyze")
def analyze(
    ctx: typer.Context,
    file: str | None = typer.Option(None, "--file", help="Path to input CSV/TXT/XLSX/XLS"),
    out: str | None = typer.Option(None, "--out", help="Where to write the analysis JSON"),
):
    runAnalyzeCommand(ctx, file, out)


@app.command("normalize")
def normalize(
    ctx: typer.Context,
    file: str | None = typer.Option(None, "--file", help="Path to input CSV/TXT/XLSX/XLS"),
    mapping: str | None = typer.Option(None, "--mapping", help="Operator mapping (JSON/YAML); replaces the suggestion"),
    nameCol: int | None = typer.Option(None, "--name-col", help="Column index for name (-1 to unset)"),
    phoneCol: int | None = typer.Option(None, "--phone-col", help="Column index for phone (-1 to unset)"),
    extraCol: Optional[List[int]] = typer.Option(None, "--extra-col", help="Column index kept as extra field (repeatable)"),
    addCountryCode: bool | None = typer.Option(
        None,
        "--add-country-code/--no-add-country-code",
        help="Prepend the country code to phones that lack it",
        show_default=True,
    ),
    out: str | None = typer.Option(None, "--out", help="Where to write the contacts JSON"),
):
    runNormalizeCommand(
        ctx=ctx,
        sourcePath=file,
        mappingPath=mapping,
        nameCol=nameCol,
        phoneCol=phoneCol,
        extraCols=list(extraCol) if extraCol else None,
        addCountryCode=addCountryCode,
        outPath=out,
    )


@app.command("objects")
def objects(
    ctx: typer.Context,
    file: str | None = typer.Option(None, "--file", help="Path to input CSV/TXT/XLSX/XLS"),
    out: str | None = typer.Option(None, "--out", help="Where to write the records JSON"),
):
    runObjectsCommand(ctx, file, out)
