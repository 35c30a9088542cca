import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)
from apis.helpers.v8_payloads import BR_TZ, build_consult_search_params
from models.v8.models import MarginSnapshot
from services.v8.exceptions import MarginTimeoutError, RejectedError, UpstreamError
from services.v8.token_cache import V8TokenCache

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 4
MAX_POLL_ATTEMPTS = 20


class MarginPending(Exception):
    """Termo ainda sem margem calculada (ou ainda fora do índice de busca)"""

    def __init__(self, term_id: str, snapshot: Optional[MarginSnapshot] = None):
        super().__init__(f"Margem pendente para o termo {term_id}")
        self.snapshot = snapshot


def _parse_margin(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class MarginPoller:
    """
    Aguarda a V8 aprovar o termo e calcular a margem disponível.

    PENDING -> READY | REJECTED | TIMED_OUT, consultando a busca de termos do
    dia em intervalo fixo.
    """

    def __init__(
        self,
        client,
        token_cache: V8TokenCache,
        provider: str = "QI",
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.token_cache = token_cache
        self.provider = provider
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(BR_TZ))

    async def await_margin(self, cpf: str, term_id: str) -> MarginSnapshot:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_exception_type(MarginPending),
            sleep=self.sleep,
            before_sleep=self._log_pending,
        )
        try:
            return await retrying(self.poll_once, cpf, term_id)
        except RetryError as e:
            logger.warning(
                f"Margem não disponível após {self.max_attempts} consultas (termo {term_id})"
            )
            last = e.last_attempt.exception()
            snapshot = getattr(last, "snapshot", None)
            raise MarginTimeoutError(
                "Tempo esgotado aguardando a margem do termo",
                detail=snapshot.model_dump() if snapshot else None,
            ) from e

    async def poll_once(self, cpf: str, term_id: str) -> MarginSnapshot:
        params = build_consult_search_params(cpf, self.clock(), provider=self.provider)
        response = await self.token_cache.call_with_token(
            lambda token: self.client.search_consults(token, params)
        )
        if not response.ok:
            raise UpstreamError(
                "Erro ao consultar margem",
                detail=response.data,
                upstream_status=response.status,
            )

        entry = self._find_term(response.data, term_id)
        if entry is None:
            raise MarginPending(term_id)

        snapshot = MarginSnapshot(
            term_id=term_id,
            available_margin_value=_parse_margin(entry.get("availableMarginValue")),
            status=entry.get("status"),
            description=entry.get("description"),
        )
        if snapshot.is_rejected:
            logger.info(f"Termo {term_id} rejeitado: {snapshot.description}")
            raise RejectedError(snapshot.description, detail=snapshot.model_dump())
        if snapshot.is_ready:
            logger.info(
                f"Margem disponível para o termo {term_id}: {snapshot.available_margin_value}"
            )
            return snapshot
        raise MarginPending(term_id, snapshot)

    @staticmethod
    def _find_term(data: Any, term_id: str) -> Optional[Dict[str, Any]]:
        entries = data.get("data") if isinstance(data, dict) else None
        for entry in entries or []:
            if isinstance(entry, dict) and str(entry.get("id")) == str(term_id):
                return entry
        return None

    def _log_pending(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        snapshot = getattr(error, "snapshot", None)
        logger.debug(
            f"Consulta {retry_state.attempt_number}/{self.max_attempts}: "
            f"status={snapshot.status if snapshot else 'não encontrado'}"
        )
