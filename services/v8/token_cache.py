import asyncio
from typing import Awaitable, Callable, Optional
import structlog
from cachetools import TTLCache
from models.v8.models import ApiResponse
from services.v8.exceptions import AuthError, UpstreamError

logger = structlog.get_logger()

TOKEN_KEY = "v8_access_token"

TokenRequest = Callable[[str], Awaitable[ApiResponse]]


def _consume_renewal_error(renewal: asyncio.Future) -> None:
    # A falha pode ocorrer depois que todos os chamadores foram cancelados
    if not renewal.cancelled():
        renewal.exception()


class V8TokenCache:
    """
    Token de acesso da V8 compartilhado pelo processo.

    A renovação é single-flight: chamadas concorrentes sem token aguardam a
    mesma task de login em vez de abrir logins paralelos.
    """

    def __init__(self, auth_client, ttl_seconds: int = 43200):
        self.auth_client = auth_client
        self._cache = TTLCache(maxsize=1, ttl=ttl_seconds)
        self._renewal: Optional[asyncio.Future] = None

    async def get_token(self) -> str:
        token = self._cache.get(TOKEN_KEY)
        if token:
            return token

        if self._renewal is None or self._renewal.done():
            self._renewal = asyncio.ensure_future(self._renew())
            self._renewal.add_done_callback(_consume_renewal_error)
        renewal = self._renewal
        try:
            # shield: o cancelamento de um chamador não derruba os demais
            return await asyncio.shield(renewal)
        finally:
            if self._renewal is renewal and renewal.done():
                self._renewal = None

    def invalidate(self, stale: Optional[str] = None) -> None:
        """Descarta o token. Com `stale`, só descarta se ainda for o mesmo token."""
        if stale is not None and self._cache.get(TOKEN_KEY) != stale:
            return
        self._cache.pop(TOKEN_KEY, None)
        logger.info("v8_token_invalidated")

    async def call_with_token(self, request: TokenRequest) -> ApiResponse:
        token = await self.get_token()
        response = await request(token)
        if response.status != 401:
            return response

        logger.warning("v8_unauthorized", action="renewing_token")
        self.invalidate(stale=token)
        token = await self.get_token()
        response = await request(token)
        if response.status == 401:
            self.invalidate(stale=token)
            raise AuthError("Token V8 recusado após renovação", detail=response.data)
        return response

    async def _renew(self) -> str:
        try:
            response = await self.auth_client.request_token()
        except UpstreamError as e:
            logger.error("v8_authentication_failed", error=str(e))
            raise AuthError(f"Falha ao autenticar na V8: {e.message}") from e

        data = response.data if isinstance(response.data, dict) else {}
        token = data.get("access_token")
        if not response.ok or not token:
            logger.error("v8_authentication_failed", status_code=response.status)
            raise AuthError(
                f"Falha ao autenticar na V8 (status {response.status})",
                detail=data.get("error_description") or data.get("error"),
            )

        self._cache[TOKEN_KEY] = token
        logger.info("v8_authentication_success")
        return token
