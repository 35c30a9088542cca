from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

READY_STATUSES = {"SUCCESS", "CONSENT_APPROVED"}
FAILED_STATUSES = {"REJECTED", "FAILED"}


class ApiResponse(BaseModel):
    """Envelope de resposta HTTP: status e corpo JSON já decodificado"""

    status: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Identity(BaseModel):
    cpf: str = Field(..., description="CPF com 11 dígitos, completado com zeros")
    birth_date: Optional[str] = Field(
        None, description="Data de nascimento no formato AAAA-MM-DD"
    )
    name: str
    email: str
    area_code: str = Field(..., description="DDD do telefone")
    phone: str = Field(..., description="Telefone sem DDD")
    gender: str = Field("male", description="'male' ou 'female'")

    class Config:
        frozen = True


class MarginSnapshot(BaseModel):
    term_id: str
    available_margin_value: float = 0.0
    status: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.available_margin_value > 0 and self.status in READY_STATUSES

    @property
    def is_rejected(self) -> bool:
        return self.status in FAILED_STATUSES


class FinancingConfig(BaseModel):
    id: str
    number_of_installments: List[int] = Field(default_factory=list)
    has_insurance: bool = False
    raw: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinancingConfig":
        installments = []
        for value in data.get("number_of_installments") or []:
            try:
                installments.append(int(value))
            except (TypeError, ValueError):
                continue

        # Nem todas as tabelas trazem a flag; o nome indica "sem seguro"
        has_insurance = data.get("has_insurance")
        if has_insurance is None:
            label = str(data.get("name") or data.get("slug") or "").lower()
            has_insurance = (
                "seguro" in label or "insurance" in label
            ) and not ("sem seguro" in label or "no insurance" in label)

        return cls(
            id=str(data.get("id")),
            number_of_installments=installments,
            has_insurance=bool(has_insurance),
            raw=data,
        )


class SimulationResult(BaseModel):
    requested_amount: float
    installment_count: int
    installment_value: float
    disbursed_amount: float
    annual_cost_rate: Optional[float] = None
    config_id: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)
