from __future__ import annotations

CANDIDATE_DELIMITERS: tuple[str, ...] = (",", ";", "\t", "|")
DEFAULT_DELIMITER = ","
SAMPLE_LINES = 10
VARIANCE_PENALTY = 0.01


def count_unquoted(line: str, delimiter: str) -> int:
    """
    Назначение:
        Считает вхождения разделителя в строке вне двойных кавычек.

    Поведение:
        - '""' внутри кавычек: литеральная кавычка, а не граница поля.
        - Состояние кавычек не переносится между строками.
    """
    in_quotes = False
    count = 0
    idx = 0
    while idx < len(line):
        ch = line[idx]
        if ch == '"':
            if in_quotes and idx + 1 < len(line) and line[idx + 1] == '"':
                idx += 2
                continue
            in_quotes = not in_quotes
        elif not in_quotes and ch == delimiter:
            count += 1
        idx += 1
    return count


def score_counts(counts: list[int]) -> tuple[int, float]:
    """
    Назначение:
        Медиана и оценка кандидата: median - 0.01 * variance.

    Поведение:
        - Медиана верхняя (counts[n // 2] после сортировки).
        - Дисперсия считается относительно медианы.
    """
    ordered = sorted(counts)
    median = ordered[len(ordered) // 2]
    variance = sum((c - median) ** 2 for c in ordered) / len(ordered)
    return median, median - VARIANCE_PENALTY * variance


def detect_delimiter(text: str) -> str:
    """
    Назначение:
        Выбирает наиболее вероятный разделитель полей для нормализованного текста.

    Входные данные:
        text: str
            Текст без BOM, переводы строк уже приведены к '\\n'.

    Выходные данные:
        str
            Один из CANDIDATE_DELIMITERS; ',' если ни один кандидат не встречается.
    """
    sample = [line for line in text.split("\n") if line][:SAMPLE_LINES]
    if not sample:
        return DEFAULT_DELIMITER

    best = DEFAULT_DELIMITER
    best_score: float | None = None
    for delimiter in CANDIDATE_DELIMITERS:
        median, score = score_counts([count_unquoted(line, delimiter) for line in sample])
        if median <= 0:
            continue
        if best_score is None or score > best_score:
            best = delimiter
            best_score = score
    return best
