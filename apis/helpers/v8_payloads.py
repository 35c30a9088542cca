from typing import Any, Dict
from datetime import datetime
import pytz
from models.v8.models import Identity

BR_TZ = pytz.timezone("America/Sao_Paulo")


def build_consult_payload(identity: Identity, provider: str = "QI") -> Dict[str, Any]:
    """Corpo do termo de consentimento (private-consignment/consult)"""
    return {
        "borrowerDocumentNumber": identity.cpf,
        "gender": identity.gender,
        "birthDate": identity.birth_date,
        "signerName": identity.name,
        "signerEmail": identity.email,
        "signerPhone": {
            "phoneNumber": identity.phone,
            "countryCode": "55",
            "areaCode": identity.area_code,
        },
        "provider": provider,
    }


def _to_utc_iso(value: datetime) -> str:
    return (
        value.astimezone(pytz.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    )


def build_consult_search_params(
    cpf: str, now: datetime, provider: str = "QI"
) -> Dict[str, Any]:
    """Filtro da busca de termos do dia corrente (horário de Brasília)"""
    if now.tzinfo is None:
        now = BR_TZ.localize(now)
    local_now = now.astimezone(BR_TZ)
    start = BR_TZ.localize(datetime(local_now.year, local_now.month, local_now.day))
    end = BR_TZ.localize(
        datetime(local_now.year, local_now.month, local_now.day, 23, 59, 59, 999000)
    )
    return {
        "startDate": _to_utc_iso(start),
        "endDate": _to_utc_iso(end),
        "limit": 50,
        "page": 1,
        "search": cpf,
        "provider": provider,
    }


def build_simulation_payload(
    term_id: str,
    config_id: str,
    installment_value: float,
    installments: int,
    provider: str = "QI",
) -> Dict[str, Any]:
    return {
        "consult_id": term_id,
        "config_id": config_id,
        "installment_face_value": installment_value,
        "number_of_installments": installments,
        "provider": provider,
    }
