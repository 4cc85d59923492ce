from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from contact_ingest.domain.exceptions import MappingFileError
from contact_ingest.domain.models import ColumnMapping

_YAML_SUFFIXES = (".yml", ".yaml")


def _get_index(raw: dict, key: str, path: str) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MappingFileError(path=path, reason=f"'{key}' must be an integer column index")
    return value


def _get_extras(raw: dict, path: str) -> tuple[int, ...]:
    value = raw.get("extras")
    if value is None:
        return ()
    if not isinstance(value, list):
        raise MappingFileError(path=path, reason="'extras' must be a list of column indices")
    extras: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise MappingFileError(path=path, reason="'extras' must contain only integers")
        extras.append(item)
    return tuple(extras)


def _load_raw(path: str) -> Any:
    text = Path(path).read_text(encoding="utf-8")
    try:
        if Path(path).suffix.lower() in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MappingFileError(path=path, reason=str(exc)) from exc


def readMappingFile(path: str) -> ColumnMapping:
    """
    Назначение:
        Читает маппинг, отредактированный оператором (JSON или YAML по суффиксу).

    Входные данные:
        path: str
            {name?: int, phone?: int, extras?: [int, ...]} либо файл анализа
            с ключом 'mapping' на верхнем уровне.

    Выходные данные:
        ColumnMapping

    Поведение:
        - Индексы не проверяются на диапазон: это делает нормализатор.
        - Неверная структура -> MappingFileError.
    """
    data = _load_raw(path)
    if not isinstance(data, dict):
        raise MappingFileError(path=path, reason="root must be an object")
    if isinstance(data.get("mapping"), dict):
        data = data["mapping"]
    return ColumnMapping(
        name=_get_index(data, "name", path),
        phone=_get_index(data, "phone", path),
        extras=_get_extras(data, path),
    )
