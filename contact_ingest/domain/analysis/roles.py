from __future__ import annotations

from dataclasses import dataclass
from functools import reduce

from contact_ingest.domain.analysis.rules import (
    HEADER_BOOST_WEIGHT,
    MIN_ROLE_SCORE,
    PATTERN_PREDICATES,
    ROLE_NAME,
    ROLE_ORDER,
    ROLE_PHONE,
    header_matches,
)
from contact_ingest.domain.models import ColumnMapping, Grid


@dataclass(frozen=True)
class ColumnScore:
    """
    Назначение:
        Оценки одной колонки по ролям (для отчёта и выбора маппинга).
    """

    index: int
    header: str
    pattern: dict[str, float]
    header_boost: dict[str, int]

    def combined(self, role: str) -> float:
        return self.pattern.get(role, 0.0) + HEADER_BOOST_WEIGHT * self.header_boost.get(role, 0)


def column_values(body_rows: Grid, index: int) -> list[str]:
    return [(row[index] if index < len(row) else "") or "" for row in body_rows]


def pattern_score(values: list[str], role: str) -> float:
    """
    Назначение:
        Доля ячеек колонки, подходящих под шаблон роли.
    """
    predicate = PATTERN_PREDICATES[role]
    total = len(values) or 1
    hits = sum(1 for value in values if predicate(value.strip()))
    return hits / total


def score_columns(headers: list[str], body_rows: Grid) -> list[ColumnScore]:
    """
    Назначение:
        Таблица оценок для всех колонок заголовка по всем строкам тела.
    """
    scores: list[ColumnScore] = []
    for idx, header in enumerate(headers):
        values = column_values(body_rows, idx)
        scores.append(
            ColumnScore(
                index=idx,
                header=header,
                pattern={role: pattern_score(values, role) for role in ROLE_ORDER},
                header_boost={role: 1 if header_matches(role, header) else 0 for role in ROLE_ORDER},
            )
        )
    return scores


def pick_column(
    role: str,
    scores: list[ColumnScore],
    remaining: frozenset[int],
) -> tuple[int | None, frozenset[int]]:
    """
    Назначение:
        Выбирает лучшую колонку для роли из оставшихся кандидатов.

    Выходные данные:
        (index | None, remaining)
            Выбранная колонка исключается из нового набора кандидатов.

    Поведение:
        - При равенстве оценок побеждает меньший индекс.
        - Ниже MIN_ROLE_SCORE[role] роль остаётся без колонки.
    """
    best: int | None = None
    best_value = -1.0
    for idx in sorted(remaining):
        value = scores[idx].combined(role)
        if value > best_value:
            best, best_value = idx, value
    if best is None or best_value < MIN_ROLE_SCORE[role]:
        return None, remaining
    return best, remaining - {best}


def suggest_mapping(headers: list[str], body_rows: Grid) -> ColumnMapping:
    """
    Назначение:
        Предлагает маппинг name/phone; extra-колонки не назначаются автоматически.

    Алгоритм:
        - phone выбирается первым среди всех колонок, затем name среди оставшихся.
        - Набор кандидатов передаётся между ролями как неизменяемый frozenset.
    """
    scores = score_columns(headers, body_rows)

    def assign(state: tuple[dict[str, int | None], frozenset[int]], role: str):
        picked, remaining = state
        index, rest = pick_column(role, scores, remaining)
        return {**picked, role: index}, rest

    picked, _ = reduce(assign, ROLE_ORDER, ({}, frozenset(range(len(headers)))))
    return ColumnMapping(name=picked.get(ROLE_NAME), phone=picked.get(ROLE_PHONE))
