from __future__ import annotations

import re

# Заголовок
HEADER_SIGNAL_THRESHOLD = 1.0
SIGNAL_EMAIL = -1.0
SIGNAL_WORD = 2.0
SIGNAL_NUMBER = -1.0
SIGNAL_MIXED = 0.5
PREVIEW_ROWS = 5
SYNTHETIC_COLUMN = "Column {index}"

# Роли колонок
ROLE_PHONE = "phone"
ROLE_NAME = "name"
ROLE_ORDER: tuple[str, ...] = (ROLE_PHONE, ROLE_NAME)

NAME_HEADER_KEYWORDS: tuple[str, ...] = ("name", "nome", "cliente", "pessoa", "contato")
PHONE_HEADER_KEYWORDS: tuple[str, ...] = ("telefone", "phone", "celular", "fone", "mobile", "whatsapp", "ramal")
HEADER_KEYWORDS: dict[str, tuple[str, ...]] = {
    ROLE_NAME: NAME_HEADER_KEYWORDS,
    ROLE_PHONE: PHONE_HEADER_KEYWORDS,
}

HEADER_BOOST_WEIGHT = 0.5
MIN_ROLE_SCORE: dict[str, float] = {
    ROLE_PHONE: 0.1,
    ROLE_NAME: 0.05,
}

# Нормализация контактов
MIN_PHONE_DIGITS = 8
DEFAULT_COUNTRY_CODE = "55"
EXTRA_FALLBACK_KEY = "Extra {index}"

LETTER_RE = re.compile(r"[^\W\d_]")
DIGIT_RE = re.compile(r"\d", re.ASCII)
NON_DIGIT_RE = re.compile(r"\D", re.ASCII)
LETTER_RUN_RE = re.compile(r"[^\W\d_]{3,}")
DIGIT_RUN_RE = re.compile(r"\d{3,}", re.ASCII)


def digits_only(value: str) -> str:
    return NON_DIGIT_RE.sub("", value)


def looks_like_phone(value: str) -> bool:
    return len(digits_only(value)) >= MIN_PHONE_DIGITS


def looks_like_name(value: str) -> bool:
    return LETTER_RUN_RE.search(value) is not None and DIGIT_RUN_RE.search(value) is None


def header_matches(role: str, header: str) -> bool:
    """
    Назначение:
        Подстрочное совпадение заголовка с ключевыми словами роли (без учёта регистра).
    """
    lowered = (header or "").lower()
    return any(keyword in lowered for keyword in HEADER_KEYWORDS.get(role, ()))


PATTERN_PREDICATES = {
    ROLE_PHONE: looks_like_phone,
    ROLE_NAME: looks_like_name,
}
