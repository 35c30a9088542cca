from typing import Any, Optional


class V8SimulationError(Exception):
    """Erro base do fluxo de simulação V8"""

    kind = "simulation_error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(V8SimulationError):
    """Dados do cliente ausentes ou mal formatados"""

    kind = "validation_error"
    status_code = 422


class NotFoundError(V8SimulationError):
    """CPF desconhecido ou nenhuma parcela viável para a margem"""

    kind = "not_found"
    status_code = 404


class AuthError(V8SimulationError):
    """Falha ao obter ou renovar o token de acesso"""

    kind = "auth_error"
    status_code = 500


class MarginTimeoutError(V8SimulationError, TimeoutError):
    """A margem não ficou disponível dentro do limite de consultas"""

    kind = "timeout"
    status_code = 504


class RejectedError(V8SimulationError):
    """O termo de consentimento foi recusado pela V8"""

    kind = "rejected"
    status_code = 422

    def __init__(self, description: Optional[str], detail: Optional[Any] = None):
        super().__init__(description or "Termo rejeitado pela V8", detail)
        self.description = description


class UpstreamError(V8SimulationError):
    """Resposta inesperada de um serviço externo"""

    kind = "upstream_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        detail: Optional[Any] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, detail)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.upstream_status is not None:
            data["upstream_status"] = self.upstream_status
        if self.detail is not None:
            data["provider_detail"] = self.detail
        return data
