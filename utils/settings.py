import os
import logging
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

V8_DEFAULT_CLIENT_ID = "DHWogdaYmEI8n5bwwxPDzulMlSK7dwIn"

_settings = None


class V8Settings:
    """Configurações do simulador V8, carregadas uma única vez do ambiente."""

    required_vars = ["API_TOKEN_UTILITARIOS", "V8_USERNAME", "V8_PASSWORD"]

    def __init__(self):
        self.port: int = int(os.getenv("PORT", "3000"))
        self.pessoas_token: Optional[str] = os.getenv("API_TOKEN_UTILITARIOS")
        self.pessoas_base_url: str = os.getenv(
            "PESSOAS_API_URL",
            "https://servicos-utilitarios-novaera.ugztmp.easypanel.host",
        )
        self.v8_username: Optional[str] = os.getenv("V8_USERNAME")
        self.v8_password: Optional[str] = os.getenv("V8_PASSWORD")
        self.v8_client_id: str = os.getenv("V8_CLIENT_ID", V8_DEFAULT_CLIENT_ID)
        self.v8_base_url: str = os.getenv("V8_BASE_URL", "https://bff.v8sistema.com")
        self.v8_auth_url: str = os.getenv(
            "V8_AUTH_URL", "https://auth.v8sistema.com/oauth/token"
        )
        self.v8_provider: str = os.getenv("V8_PROVIDER", "QI")
        self.proxy_url: Optional[str] = os.getenv("PROXY_URL") or None
        self.token_ttl_seconds: int = int(os.getenv("V8_TOKEN_TTL_SECONDS", "43200"))
        self.http_timeout: float = float(os.getenv("V8_HTTP_TIMEOUT", "20"))

    def check_environment_variables(self) -> None:
        """Verifica se as variáveis de ambiente estão carregadas corretamente."""
        for var in self.required_vars:
            if not os.getenv(var):
                logger.error(f"Variável de ambiente {var} não está definida.")
                raise EnvironmentError(f"Variável de ambiente {var} não está definida.")


def get_settings() -> V8Settings:
    """Retorna a instância singleton das configurações"""
    global _settings
    if _settings is None:
        _settings = V8Settings()
    return _settings
