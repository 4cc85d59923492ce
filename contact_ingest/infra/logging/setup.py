from __future__ import annotations

import logging
from pathlib import Path

LOGGER_ROOT = "contactIngest"
LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class RunFieldsFilter(logging.Filter):
    """
    Назначение:
        Подставляет runId/component в записи, сделанные напрямую через logger.* без extra.
    """

    def __init__(self, runId: str, component: str = "core"):
        super().__init__()
        self.defaults = {"runId": runId, "component": component}

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in self.defaults.items():
            if not hasattr(record, name):
                setattr(record, name, value)
        return True


class LineLogStream:
    """
    Назначение:
        Файлоподобный объект: каждую завершённую строку текста пишет в лог команды.
    """

    def __init__(self, logger: logging.Logger, level: int, runId: str, component: str):
        self.logger = logger
        self.level = level
        self.extra = {"runId": runId, "component": component}
        self.pending = ""

    def write(self, s: str) -> int:
        if not s:
            return 0
        *complete, self.pending = (self.pending + s).split("\n")
        for line in complete:
            self._log(line)
        return len(s)

    def flush(self) -> None:
        self._log(self.pending)
        self.pending = ""

    def _log(self, line: str) -> None:
        if line.strip():
            self.logger.log(self.level, line.rstrip(), extra=self.extra)


class TeeStream:
    """
    Назначение:
        Вывод в терминал оператора с копией в лог (primary: исходный sys.stdout/sys.stderr).
    """

    def __init__(self, primary, secondary):
        self.primary = primary
        self.secondary = secondary

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.secondary.write(s)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()


def mapLogLevel(levelName: str) -> int:
    level = _LEVELS.get((levelName or "").strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {levelName}")
    return level


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Изолированный логгер одного запуска команды (analyze/normalize/objects).

    Выходные данные:
        (logger, logFilePath)
            Файл: <logDir>/<command>_<runId>.log

    Поведение:
        - Повторный вызов с тем же runId пересоздаёт обработчики (тесты, повторный запуск).
        - Записи не уходят в root-логгер.
    """
    logPath = Path(logDir) / f"{commandName}_{runId}.log"
    logPath.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"{LOGGER_ROOT}.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False
    logger.setLevel(mapLogLevel(logLevel))

    handler = logging.FileHandler(logPath, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    handler.addFilter(RunFieldsFilter(runId=runId))
    logger.addHandler(handler)

    return logger, str(logPath)


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    """
    Назначение:
        Запись события стадии (extract/header/roles/normalize/...) с runId/component.
    """
    logger.log(level, message, extra={"runId": runId, "component": component})
