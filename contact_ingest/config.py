from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable

import yaml

ENV_PREFIX = "CONTACT_INGEST_"


@dataclass(frozen=True)
class Settings:
    # Paths
    log_dir: str = "./logs"
    report_dir: str = "./reports"
    log_level: str = "INFO"

    # Text sources
    encoding: str = "utf-8"
    fallback_encoding: str | None = "cp1252"

    # Contacts
    country_code: str = "55"
    add_country_code: bool = False

    # Reports
    report_items_limit: int = 200


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def parse_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    vv = str(v).strip().lower()
    if vv in ("1", "true", "yes", "y", "on"):
        return True
    if vv in ("0", "false", "no", "n", "off"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


def parse_int(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError(f"Invalid integer value: {v}")
    return int(v)


def parse_optional_str(v: Any) -> str | None:
    text = "" if v is None else str(v).strip()
    return text or None


_COERCE: dict[str, Callable[[Any], Any]] = {
    "add_country_code": parse_bool,
    "report_items_limit": parse_int,
    "fallback_encoding": parse_optional_str,
}


def _coerce(name: str, value: Any) -> Any:
    return _COERCE.get(name, str)(value)


def _read_yaml_config(path: Path) -> dict:
    """
    Назначение:
        Читает config.yml. Отсутствующий файл: пустой конфиг; файл не-словарь: ValueError.
    """
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"config {path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config {path} must be a mapping of settings")
    return data


def _read_env(names: list[str]) -> dict[str, str]:
    found: dict[str, str] = {}
    for name in names:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            found[name] = raw.strip()
    return found


def _check_encoding(name: str, value: str | None) -> None:
    if value is None:
        return
    try:
        codecs.lookup(value)
    except LookupError as exc:
        raise ValueError(f"{name} is not a known encoding: {value}") from exc


def _validate(settings: Settings) -> None:
    if not (settings.country_code.isascii() and settings.country_code.isdigit()):
        raise ValueError(f"country_code must contain only digits: {settings.country_code}")
    if settings.report_items_limit < 0:
        raise ValueError("report_items_limit must be >= 0")
    _check_encoding("encoding", settings.encoding)
    _check_encoding("fallback_encoding", settings.fallback_encoding)


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Назначение:
        Итоговые настройки запуска.

    Поведение:
        - Приоритет: CLI > ENV (CONTACT_INGEST_<NAME>) > config.yml > значения по умолчанию.
        - Неизвестные ключи config.yml игнорируются.
        - Неверные значения (булево, число, код страны, имя кодировки) -> ValueError.
    """
    names = [f.name for f in fields(Settings)]
    sources: list[str] = []
    layers: list[dict[str, Any]] = []

    cfg = _read_yaml_config(Path(config_path)) if config_path else {}
    if cfg:
        sources.append("config")
        layers.append({k: v for k, v in cfg.items() if k in names})

    env = _read_env(names)
    if env:
        sources.append("env")
        layers.append(env)

    cli = {k: v for k, v in cli_overrides.items() if v is not None and k in names}
    if cli:
        sources.append("cli")
        layers.append(cli)

    values: dict[str, Any] = {}
    for layer in layers:
        for name, value in layer.items():
            values[name] = _coerce(name, value)

    settings = Settings(**values)
    _validate(settings)
    return LoadedSettings(settings=settings, sources_used=sources)
