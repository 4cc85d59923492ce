from __future__ import annotations

from dataclasses import dataclass, field

from contact_ingest.domain.analysis.rules import (
    DEFAULT_COUNTRY_CODE,
    EXTRA_FALLBACK_KEY,
    MIN_PHONE_DIGITS,
    digits_only,
)
from contact_ingest.domain.models import (
    ColumnMapping,
    Contact,
    DiagnosticItem,
    DiagnosticStage,
    Grid,
    Row,
)


@dataclass
class RowOutcome:
    """
    Назначение:
        Результат нормализации одной строки: контакт (или None) и диагностика.
    """

    contact: Contact | None
    warnings: list[DiagnosticItem] = field(default_factory=list)


def safe_cell(row: Row, index: int | None) -> str | None:
    """
    Назначение:
        Значение ячейки по индексу с проверкой границ.

    Поведение:
        - None, отрицательный индекс или индекс за пределами строки -> None.
    """
    if index is None or row is None:
        return None
    if index < 0 or index >= len(row):
        return None
    value = row[index]
    return None if value is None else str(value)


class ContactNormalizer:
    """
    Назначение/ответственность:
        Превращает строки тела и итоговый маппинг оператора в список Contact.

    Инварианты/гарантии:
        - Порядок контактов совпадает с порядком строк; дедупликации нет.
        - Строка без имени и без валидного телефона не даёт контакта, даже при наличии extras.
        - Повторный вызов с теми же входами даёт тот же результат.
    """

    def __init__(self, country_code: str = DEFAULT_COUNTRY_CODE, min_phone_digits: int = MIN_PHONE_DIGITS) -> None:
        self.country_code = country_code
        self.min_phone_digits = min_phone_digits

    def normalize_phone(self, raw: str | None, add_country_code: bool) -> str | None:
        if raw is None:
            return None
        digits = digits_only(raw)
        if len(digits) < self.min_phone_digits:
            return None
        if add_country_code and self.country_code and not digits.startswith(self.country_code):
            digits = self.country_code + digits
        return digits

    def collect_extras(self, row: Row, mapping: ColumnMapping, headers: list[str]) -> dict[str, str]:
        extras: dict[str, str] = {}
        for position, index in enumerate(mapping.extras, start=1):
            value = safe_cell(row, index)
            if value is None or not value.strip():
                continue
            key = safe_cell(headers, index) or EXTRA_FALLBACK_KEY.format(index=position)
            extras[key] = value.strip()
        return extras

    def normalize_row(
        self,
        row: Row,
        mapping: ColumnMapping,
        headers: list[str],
        add_country_code: bool = False,
    ) -> RowOutcome:
        warnings: list[DiagnosticItem] = []

        name_raw = safe_cell(row, mapping.name)
        name = name_raw.strip() if name_raw is not None and name_raw.strip() else None

        phone_raw = safe_cell(row, mapping.phone)
        phone = self.normalize_phone(phone_raw, add_country_code)
        if phone is None and phone_raw is not None and phone_raw.strip():
            warnings.append(
                DiagnosticItem(
                    stage=DiagnosticStage.NORMALIZE,
                    code="PHONE_TOO_SHORT",
                    field="phone",
                    message=f"phone has fewer than {self.min_phone_digits} digits",
                )
            )

        extras = self.collect_extras(row, mapping, headers)

        if name is None and phone is None:
            warnings.append(
                DiagnosticItem(
                    stage=DiagnosticStage.NORMALIZE,
                    code="ROW_WITHOUT_CONTACT",
                    field=None,
                    message="row has neither a name nor a valid phone",
                )
            )
            return RowOutcome(contact=None, warnings=warnings)

        return RowOutcome(
            contact=Contact(name=name, phone=phone, extras=extras or None),
            warnings=warnings,
        )

    def normalize(
        self,
        body_rows: Grid,
        mapping: ColumnMapping,
        headers: list[str],
        add_country_code: bool = False,
    ) -> list[Contact]:
        contacts: list[Contact] = []
        for row in body_rows or []:
            outcome = self.normalize_row(row, mapping, headers, add_country_code)
            if outcome.contact is not None:
                contacts.append(outcome.contact)
        return contacts


def normalize_contacts(
    body_rows: Grid,
    mapping: ColumnMapping,
    headers: list[str] | None = None,
    add_country_code: bool = False,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> list[Contact]:
    return ContactNormalizer(country_code=country_code).normalize(body_rows, mapping, headers or [], add_country_code)
