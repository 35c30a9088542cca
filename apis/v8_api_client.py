import asyncio
import json
from typing import Any, Dict, Optional
import aiohttp
import structlog
from aiohttp import TCPConnector, ClientTimeout
from models.v8.models import ApiResponse
from services.v8.exceptions import UpstreamError
from utils.settings import V8Settings, get_settings

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ]
)
logger = structlog.get_logger()


class V8ApiClient:
    """
    Cliente HTTP da plataforma V8 (consignado privado).

    Não guarda token: cada chamada recebe o token de quem a faz, normalmente
    através do V8TokenCache.
    """

    def __init__(self, settings: Optional[V8Settings] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.v8_base_url.rstrip("/")
        self.auth_url = self.settings.v8_auth_url
        self.provider = self.settings.v8_provider
        self.proxy_url = self.settings.proxy_url
        self.session: Optional[aiohttp.ClientSession] = None
        self.timeout = ClientTimeout(total=self.settings.http_timeout)

    async def start_session(self):
        """Inicia uma nova sessão HTTP."""
        if self.session is None or self.session.closed:
            connector = TCPConnector(limit=100, ttl_dns_cache=300)
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers={
                    "User-Agent": "V8-Client/1.0",
                    "Accept": "application/json",
                },
            )
            logger.info("v8_session_created", status="success")

    async def close_session(self):
        """Fecha a sessão HTTP de forma segura."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info("v8_session_closed", status="success")

    async def _request(
        self,
        method: str,
        url: str,
        token: Optional[str] = None,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        form: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        await self.start_session()
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with self.session.request(
                method,
                url,
                json=json_body,
                data=form,
                params=params,
                headers=headers,
                proxy=self.proxy_url,
            ) as response:
                response_text = await response.text()
                logger.info(
                    "v8_request",
                    method=method,
                    url=url,
                    status_code=response.status,
                )
                try:
                    data = json.loads(response_text) if response_text else {}
                except json.JSONDecodeError:
                    data = {"message": response_text}
                return ApiResponse(status=response.status, data=data)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("v8_request_error", method=method, url=url, error=str(e))
            raise UpstreamError(f"Falha de comunicação com a V8: {str(e)}") from e

    async def request_token(self) -> ApiResponse:
        """Login password grant no provedor de identidade da V8."""
        form = {
            "grant_type": "password",
            "username": self.settings.v8_username,
            "password": self.settings.v8_password,
            "audience": self.base_url,
            "scope": "offline_access",
            "client_id": self.settings.v8_client_id,
        }
        return await self._request("POST", self.auth_url, form=form)

    async def create_consult(self, token: str, payload: Dict[str, Any]) -> ApiResponse:
        return await self._request(
            "POST",
            f"{self.base_url}/private-consignment/consult",
            token=token,
            json_body=payload,
        )

    async def authorize_consult(self, token: str, consult_id: str) -> ApiResponse:
        return await self._request(
            "POST",
            f"{self.base_url}/private-consignment/consult/{consult_id}/authorize",
            token=token,
            json_body={},
        )

    async def search_consults(self, token: str, params: Dict[str, Any]) -> ApiResponse:
        return await self._request(
            "GET",
            f"{self.base_url}/private-consignment/consult",
            token=token,
            params=params,
        )

    async def list_simulation_configs(self, token: str) -> ApiResponse:
        return await self._request(
            "GET",
            f"{self.base_url}/private-consignment/simulation/configs",
            token=token,
        )

    async def create_simulation(self, token: str, payload: Dict[str, Any]) -> ApiResponse:
        return await self._request(
            "POST",
            f"{self.base_url}/private-consignment/simulation",
            token=token,
            json_body=payload,
        )
