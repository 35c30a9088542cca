from enum import Enum
from typing import Any

# Vocabulário das mensagens de erro da simulação V8
INSURANCE_TERMS = ("insurance", "seguro")
NONVIABLE_TERMS = ("installment", "margin", "above", "minimum", "under")


class SimulationFailure(str, Enum):
    NONVIABLE = "nonviable"
    INSURANCE = "insurance"
    UNEXPECTED = "unexpected"


def failure_reason(payload: Any) -> str:
    """Junta os campos textuais do erro retornado pela V8"""
    if isinstance(payload, dict):
        parts = [
            str(payload.get(key))
            for key in ("title", "detail", "message", "error", "description")
            if payload.get(key)
        ]
        return " ".join(parts)
    return str(payload or "")


def classify_simulation_failure(payload: Any) -> SimulationFailure:
    reason = failure_reason(payload).lower()
    if any(term in reason for term in NONVIABLE_TERMS):
        return SimulationFailure.NONVIABLE
    if any(term in reason for term in INSURANCE_TERMS):
        return SimulationFailure.INSURANCE
    return SimulationFailure.UNEXPECTED
