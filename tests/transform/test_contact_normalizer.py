from __future__ import annotations

from contact_ingest.domain.models import ColumnMapping, Contact
from contact_ingest.domain.transform.contact_normalizer import ContactNormalizer, normalize_contacts, safe_cell

HEADERS = ["Nome", "Telefone", "Cidade", "Email"]


def test_phone_is_stripped_to_digits():
    normalizer = ContactNormalizer()
    assert normalizer.normalize_phone("(11) 99999-8888", add_country_code=False) == "11999998888"


def test_country_code_is_prefixed_once():
    normalizer = ContactNormalizer()
    assert normalizer.normalize_phone("(11) 99999-8888", add_country_code=True) == "5511999998888"
    assert normalizer.normalize_phone("+55 11 99999-8888", add_country_code=True) == "5511999998888"


def test_country_code_is_configurable():
    normalizer = ContactNormalizer(country_code="351")
    assert normalizer.normalize_phone("912 345 678", add_country_code=True) == "351912345678"


def test_short_phone_is_absent_but_name_keeps_the_row():
    outcome = ContactNormalizer().normalize_row(["Ana", "123"], ColumnMapping(name=0, phone=1), HEADERS)
    assert outcome.contact == Contact(name="Ana", phone=None, extras=None)
    assert [w.code for w in outcome.warnings] == ["PHONE_TOO_SHORT"]


def test_rows_without_name_and_phone_are_dropped():
    mapping = ColumnMapping(name=0, phone=1, extras=(2,))
    rows = [
        ["", "", ""],
        ["  ", "12", "Recife"],
        ["Bia", "", "Natal"],
    ]
    contacts = normalize_contacts(rows, mapping, HEADERS)
    assert contacts == [Contact(name="Bia", phone=None, extras={"Cidade": "Natal"})]


def test_extras_use_header_or_positional_key():
    mapping = ColumnMapping(name=0, phone=1, extras=(2, 3, 9))
    row = ["Ana", "11999998888", " Recife ", ""]
    contact = ContactNormalizer().normalize_row(row, mapping, ["Nome", "Telefone", "Cidade"]).contact
    assert contact is not None
    assert contact.extras == {"Cidade": "Recife"}

    mapping = ColumnMapping(name=0, extras=(1,))
    contact = ContactNormalizer().normalize_row(["Ana", "obs"], mapping, []).contact
    assert contact is not None
    assert contact.extras == {"Extra 1": "obs"}


def test_out_of_range_and_negative_indices_are_absent():
    assert safe_cell(["a"], 5) is None
    assert safe_cell(["a"], -1) is None
    assert safe_cell(["a"], None) is None
    contacts = normalize_contacts([["Ana", "11999998888"]], ColumnMapping(name=7, phone=1))
    assert contacts == [Contact(name=None, phone="11999998888", extras=None)]


def test_order_is_preserved_without_dedupe():
    rows = [["Ana", "11999998888"], ["Bia", "11988887777"], ["Ana", "11999998888"]]
    contacts = normalize_contacts(rows, ColumnMapping(name=0, phone=1), HEADERS)
    assert [c.name for c in contacts] == ["Ana", "Bia", "Ana"]


def test_normalization_is_idempotent():
    rows = [["Ana", "(11) 99999-8888", "Recife"], ["", "123", ""], ["Caio", "", "Natal"]]
    mapping = ColumnMapping(name=0, phone=1, extras=(2,))
    first = normalize_contacts(rows, mapping, HEADERS, add_country_code=True)
    second = normalize_contacts(rows, mapping, HEADERS, add_country_code=True)
    assert first == second
    assert [c.to_dict() for c in first] == [c.to_dict() for c in second]
    assert first[0].to_dict() == {"name": "Ana", "phone": "5511999998888", "extras": {"Cidade": "Recife"}}


def test_non_ascii_digits_are_not_phone_digits():
    normalizer = ContactNormalizer()
    assert normalizer.normalize_phone("١١٩٩٩٩٩٨٨٨٨", add_country_code=False) is None
    assert normalizer.normalize_phone("(11) ٩ 99999-8888", add_country_code=False) == "11999998888"
