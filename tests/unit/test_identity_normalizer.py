"""Unit tests for CPF/identity normalization and consult payloads"""

import pytest
from datetime import datetime
from apis.helpers.identity_normalizer import (
    DEFAULT_EMAIL,
    format_cpf,
    identity_from_person,
    normalize_birth_date,
    normalize_gender,
    split_phone,
)
from apis.helpers.v8_payloads import (
    BR_TZ,
    build_consult_payload,
    build_consult_search_params,
)
from services.v8.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123.456.789-09", "12345678909"),
        ("12345678909", "12345678909"),
        (1234567890, "01234567890"),
        ("  4567-8 ", "00000045678"),
        ("000.000.001-91", "00000000191"),
    ],
)
def test_format_cpf_pads_to_eleven_digits(raw, expected):
    cpf = format_cpf(raw)
    assert cpf == expected
    assert len(cpf) == 11 and cpf.isdigit()


@pytest.mark.parametrize("raw", [None, "", "abc", "123456789012"])
def test_format_cpf_rejects_unusable_input(raw):
    with pytest.raises(ValidationError):
        format_cpf(raw)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15/03/1988", "1988-03-15"),
        ("1988-03-15", "1988-03-15"),
        (" 15/03/1988 ", "1988-03-15"),
    ],
)
def test_normalize_birth_date_accepted_formats(raw, expected):
    assert normalize_birth_date(raw) == expected


def test_normalize_birth_date_missing_is_none():
    assert normalize_birth_date(None) is None
    assert normalize_birth_date("  ") is None


@pytest.mark.parametrize(
    "raw",
    [
        "03-15-1988",
        "15.03.1988",
        "31/02/1988",
        "19880315",
        "15/03/1988T99:99",
        "1988-03-15Tgarbage",
        "1988-03-15T00:00:00.000Z",
        "1/3/1988",
    ],
)
def test_normalize_birth_date_rejects_unknown_format(raw):
    with pytest.raises(ValidationError):
        normalize_birth_date(raw)


@pytest.mark.parametrize(
    "code, expected",
    [("F", "female"), ("feminino", "female"), ("2", "female"), ("M", "male"), (None, "male"), ("X", "male")],
)
def test_normalize_gender(code, expected):
    assert normalize_gender(code) == expected


def test_split_phone():
    assert split_phone("(11) 98765-4321") == ("11", "987654321")
    assert split_phone("5511987654321") == ("11", "987654321")
    assert split_phone("987654321", "21") == ("21", "987654321")
    assert split_phone(None) == ("71", "999999999")


def test_identity_from_person_applies_defaults():
    identity = identity_from_person(
        {"cpf": "1234567890", "nome": "JOAO", "dataNascimento": "1990-01-02", "email": "invalido"}
    )

    assert identity.cpf == "01234567890"
    assert identity.birth_date == "1990-01-02"
    assert identity.name == "JOAO"
    assert identity.email == DEFAULT_EMAIL
    assert identity.area_code == "71"
    assert identity.phone == "999999999"
    assert identity.gender == "male"


def test_consult_payload_fields(person):
    payload = build_consult_payload(identity_from_person(person))

    assert payload == {
        "borrowerDocumentNumber": "12345678909",
        "gender": "female",
        "birthDate": "1988-03-15",
        "signerName": "MARIA DA SILVA",
        "signerEmail": "maria@example.com",
        "signerPhone": {"phoneNumber": "988887777", "countryCode": "55", "areaCode": "71"},
        "provider": "QI",
    }


def test_consult_payload_is_deterministic(person):
    identity = identity_from_person(person)
    assert build_consult_payload(identity) == build_consult_payload(identity)


def test_search_params_cover_local_day():
    now = BR_TZ.localize(datetime(2026, 10, 19, 14, 30))
    params = build_consult_search_params("12345678909", now)

    # Brasília is UTC-3
    assert params["startDate"] == "2026-10-19T03:00:00.000Z"
    assert params["endDate"] == "2026-10-20T02:59:59.999Z"
    assert params["search"] == "12345678909"
    assert params["limit"] == 50
    assert params["page"] == 1
    assert params["provider"] == "QI"
