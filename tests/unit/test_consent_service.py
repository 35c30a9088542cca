"""Unit tests for consent term creation/authorization"""

import asyncio
import pytest
from apis.helpers.identity_normalizer import identity_from_person
from models.v8.models import ApiResponse
from services.v8.consent_service import ConsentRegistrar
from services.v8.exceptions import UpstreamError, ValidationError


def test_create_term_returns_provider_id(v8_client, token_cache, person):
    registrar = ConsentRegistrar(v8_client, token_cache)

    term_id = asyncio.run(registrar.create_term(identity_from_person(person)))

    assert term_id == "term-1"
    (_, token, payload), = v8_client.calls_to("create_consult")
    assert token == "token-1"
    assert payload["borrowerDocumentNumber"] == "12345678909"
    assert payload["birthDate"] == "1988-03-15"


def test_create_term_without_birth_date_fails_before_any_call(v8_client, token_cache, person):
    person.pop("birthDate")
    registrar = ConsentRegistrar(v8_client, token_cache)

    with pytest.raises(ValidationError):
        asyncio.run(registrar.create_term(identity_from_person(person)))

    assert v8_client.requests == []
    assert v8_client.calls == 0


def test_create_term_upstream_error_keeps_payload(v8_client, token_cache, person):
    v8_client.consult_response = ApiResponse(
        status=400, data={"title": "Invalid document number"}
    )
    registrar = ConsentRegistrar(v8_client, token_cache)

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(registrar.create_term(identity_from_person(person)))

    assert exc_info.value.upstream_status == 400
    assert exc_info.value.detail == {"title": "Invalid document number"}


def test_create_term_without_id_is_upstream_error(v8_client, token_cache, person):
    v8_client.consult_response = ApiResponse(status=201, data={})
    registrar = ConsentRegistrar(v8_client, token_cache)

    with pytest.raises(UpstreamError):
        asyncio.run(registrar.create_term(identity_from_person(person)))


def test_authorize_term(v8_client, token_cache):
    registrar = ConsentRegistrar(v8_client, token_cache)

    asyncio.run(registrar.authorize_term("term-1"))

    assert v8_client.calls_to("authorize_consult") == [
        ("authorize_consult", "token-1", "term-1")
    ]


def test_authorize_term_failure_is_not_retried(v8_client, token_cache):
    v8_client.authorize_response = ApiResponse(status=500, data={"message": "boom"})
    registrar = ConsentRegistrar(v8_client, token_cache)

    with pytest.raises(UpstreamError):
        asyncio.run(registrar.authorize_term("term-1"))

    assert len(v8_client.calls_to("authorize_consult")) == 1
