import re
from datetime import datetime
from typing import Any, Dict, Optional
from models.v8.models import Identity
from services.v8.exceptions import ValidationError

DEFAULT_EMAIL = "email@teste.com"
DEFAULT_AREA_CODE = "71"
DEFAULT_PHONE = "999999999"
DEFAULT_NAME = "NOME DESCONHECIDO"

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
BIRTH_DATE_FORMATS = (
    (re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%d/%m/%Y"),
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
)
FEMALE_CODES = {"F", "FEMININO", "FEMALE", "2"}


def format_cpf(cpf: Any) -> str:
    """
    Normaliza o CPF: remove tudo que não for dígito e completa com zeros
    à esquerda até 11 caracteres.
    """
    if cpf is None:
        raise ValidationError("CPF não fornecido")
    digits = re.sub(r"\D", "", str(cpf))
    if not digits:
        raise ValidationError("CPF não fornecido")
    if len(digits) > 11:
        raise ValidationError(f"CPF inválido: {cpf}")
    return digits.zfill(11)


def normalize_birth_date(value: Optional[str]) -> Optional[str]:
    """
    Converte DD/MM/AAAA ou AAAA-MM-DD para AAAA-MM-DD.

    Retorna None quando a data não foi informada e levanta ValidationError
    para qualquer outro formato.
    """
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    for pattern, fmt in BIRTH_DATE_FORMATS:
        if not pattern.match(raw):
            continue
        try:
            return datetime.strptime(raw, fmt).strftime("%Y-%m-%d")
        except ValueError:
            break
    raise ValidationError(f"Data de nascimento em formato não reconhecido: {value}")


def normalize_gender(code: Optional[str]) -> str:
    if code is None:
        return "male"
    return "female" if str(code).strip().upper() in FEMALE_CODES else "male"


def normalize_email(email: Optional[str]) -> str:
    if email and EMAIL_PATTERN.match(str(email).strip()):
        return str(email).strip()
    return DEFAULT_EMAIL


def split_phone(phone: Optional[str], area_code: Optional[str] = None):
    """Separa DDD e número. Números com 10 ou 11 dígitos trazem o DDD embutido."""
    digits = re.sub(r"\D", "", str(phone or ""))
    area = re.sub(r"\D", "", str(area_code or ""))

    if digits.startswith("55") and len(digits) in (12, 13):
        digits = digits[2:]
    if len(digits) in (10, 11):
        return area or digits[:2], digits[2:]
    if len(digits) in (8, 9):
        return area or DEFAULT_AREA_CODE, digits
    return area or DEFAULT_AREA_CODE, DEFAULT_PHONE


def _first(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def identity_from_person(person: Dict[str, Any], cpf: Optional[str] = None) -> Identity:
    """Monta a identidade do tomador a partir do registro da API de pessoas"""
    area_code, phone = split_phone(
        _first(person, "phone", "telefone", "celular"),
        _first(person, "areaCode", "ddd"),
    )
    name = _first(person, "name", "nome")

    return Identity(
        cpf=format_cpf(cpf or _first(person, "cpf")),
        birth_date=normalize_birth_date(
            _first(person, "birthDate", "dataNascimento", "data_nascimento")
        ),
        name=str(name).strip() if name else DEFAULT_NAME,
        email=normalize_email(_first(person, "email")),
        area_code=area_code,
        phone=phone,
        gender=normalize_gender(_first(person, "gender", "sexo")),
    )
