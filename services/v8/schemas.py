from pydantic import BaseModel, Field
from typing import Optional, Union


class SimulationRequest(BaseModel):
    cpf: Union[str, int] = Field(..., description="CPF do cliente, com ou sem máscara")


class SimulationResponse(BaseModel):
    cpf: str
    term_id: str
    available_margin: float
    requested_amount: float = Field(..., description="Valor total solicitado")
    released_amount: float = Field(..., description="Valor liberado ao cliente")
    installments: int
    installment_value: float
    annual_cet: Optional[float] = Field(None, description="CET anual")
