import asyncio
import logging
from typing import Any, Dict, Optional
import aiohttp
from services.v8.exceptions import UpstreamError
from utils.settings import V8Settings, get_settings

logger = logging.getLogger(__name__)


class PessoasApiClient:
    """Consulta de dados cadastrais por CPF (serviços utilitários)"""

    def __init__(self, settings: Optional[V8Settings] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.pessoas_base_url.rstrip("/")
        self.token = self.settings.pessoas_token
        self.session: Optional[aiohttp.ClientSession] = None
        self.timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)

    async def start_session(self):
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.token}",
                },
            )

    async def close_session(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def get_person_by_cpf(self, cpf: str) -> Optional[Dict[str, Any]]:
        """Retorna o registro da pessoa ou None quando o CPF não é encontrado."""
        await self.start_session()
        url = f"{self.base_url}/api/pessoas/cpf/{cpf}"

        try:
            async with self.session.get(url) as response:
                logger.debug(f"API Response Status: {response.status}")
                if response.status == 404:
                    logger.warning(f"CPF {cpf} não encontrado na API de consulta")
                    return None
                if response.status != 200:
                    body = await response.text()
                    raise UpstreamError(
                        f"Erro {response.status} ao consultar CPF",
                        detail=body,
                        upstream_status=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Erro de conexão ao consultar CPF {cpf}: {str(e)}")
            raise UpstreamError("Erro de conexão com a API de consulta") from e

        records = data.get("data") if isinstance(data, dict) else None
        if not isinstance(data, dict) or not isinstance(records, (list, type(None))):
            raise UpstreamError("Resposta inesperada da API de consulta", detail=data)
        if not records:
            logger.warning(f"CPF {cpf} não encontrado na API de consulta")
            return None
        return records[0]
