from fastapi import APIRouter, HTTPException, Depends
from apis import PessoasApiClient, V8ApiClient
from utils.settings import get_settings
from .consent_service import ConsentRegistrar
from .exceptions import V8SimulationError
from .installment_negotiator import InstallmentNegotiator
from .margin_poller import MarginPoller
from .schemas import SimulationRequest, SimulationResponse
from .service import V8SimulationService
from .token_cache import V8TokenCache
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v8"])

_v8_service = None


def get_v8_simulation_service() -> V8SimulationService:
    """Instância única do serviço: o token V8 é compartilhado pelo processo"""
    global _v8_service
    if _v8_service is None:
        settings = get_settings()
        settings.check_environment_variables()

        v8_client = V8ApiClient(settings)
        token_cache = V8TokenCache(v8_client, ttl_seconds=settings.token_ttl_seconds)
        _v8_service = V8SimulationService(
            pessoas_client=PessoasApiClient(settings),
            v8_client=v8_client,
            token_cache=token_cache,
            registrar=ConsentRegistrar(v8_client, token_cache, settings.v8_provider),
            poller=MarginPoller(v8_client, token_cache, settings.v8_provider),
            negotiator=InstallmentNegotiator(v8_client, token_cache, settings.v8_provider),
        )
    return _v8_service


async def close_v8_service():
    global _v8_service
    if _v8_service is not None:
        await _v8_service.v8_client.close_session()
        await _v8_service.pessoas_client.close_session()
        _v8_service = None


async def _run_simulation(
    simulation_data: SimulationRequest, service: V8SimulationService
) -> SimulationResponse:
    try:
        logger.info(f"Recebendo requisição de simulação V8: {simulation_data.cpf}")
        return await service.simulate(simulation_data.cpf)
    except V8SimulationError as e:
        logger.warning(f"Simulação V8 falhou ({e.kind}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.exception(f"Erro inesperado na simulação V8: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail={"kind": "internal_error", "message": "Erro interno na simulação"},
        )


@router.post("/api/v1/v8/simulation", response_model=SimulationResponse)
async def simulate_clt(
    simulation_data: SimulationRequest,
    service: V8SimulationService = Depends(get_v8_simulation_service),
):
    """Simula consignado privado (CLT) na V8 a partir do CPF"""
    return await _run_simulation(simulation_data, service)


@router.post("/simular", response_model=SimulationResponse, include_in_schema=False)
async def simulate_legacy(
    simulation_data: SimulationRequest,
    service: V8SimulationService = Depends(get_v8_simulation_service),
):
    return await _run_simulation(simulation_data, service)
