# Flake8: noqa
from .identity_normalizer import format_cpf, identity_from_person, normalize_birth_date
from .v8_payloads import (
    build_consult_payload,
    build_consult_search_params,
    build_simulation_payload,
)
