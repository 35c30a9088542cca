import logging
from typing import List
from apis.helpers.identity_normalizer import format_cpf, identity_from_person
from models.v8.models import FinancingConfig
from services.v8.consent_service import ConsentRegistrar
from services.v8.exceptions import NotFoundError, UpstreamError
from services.v8.installment_negotiator import InstallmentNegotiator
from services.v8.margin_poller import MarginPoller
from services.v8.schemas import SimulationResponse
from services.v8.token_cache import V8TokenCache

logger = logging.getLogger(__name__)


class V8SimulationService:
    """
    Fluxo completo de simulação do consignado privado:
    consulta CPF -> gera termo -> autoriza -> aguarda margem -> tabelas -> simulação.
    """

    def __init__(
        self,
        pessoas_client,
        v8_client,
        token_cache: V8TokenCache,
        registrar: ConsentRegistrar,
        poller: MarginPoller,
        negotiator: InstallmentNegotiator,
    ):
        self.pessoas_client = pessoas_client
        self.v8_client = v8_client
        self.token_cache = token_cache
        self.registrar = registrar
        self.poller = poller
        self.negotiator = negotiator

    async def simulate(self, cpf) -> SimulationResponse:
        cpf = format_cpf(cpf)

        person = await self.pessoas_client.get_person_by_cpf(cpf)
        if not person:
            raise NotFoundError(f"CPF {cpf} não encontrado")

        identity = identity_from_person(person, cpf=cpf)

        term_id = await self.registrar.create_term(identity)
        await self.registrar.authorize_term(term_id)

        snapshot = await self.poller.await_margin(cpf, term_id)
        configs = await self.fetch_configs()

        result = await self.negotiator.negotiate(
            term_id, configs, snapshot.available_margin_value
        )
        if result is None:
            raise NotFoundError(
                f"Nenhuma parcela viável para a margem de R${snapshot.available_margin_value:.2f}"
            )

        logger.info(
            f"Simulação concluída para CPF {cpf}: {result.installment_count}x de "
            f"R${result.installment_value:.2f}"
        )
        return SimulationResponse(
            cpf=cpf,
            term_id=term_id,
            available_margin=snapshot.available_margin_value,
            requested_amount=result.requested_amount,
            released_amount=result.disbursed_amount,
            installments=result.installment_count,
            installment_value=result.installment_value,
            annual_cet=result.annual_cost_rate,
        )

    async def fetch_configs(self) -> List[FinancingConfig]:
        """Tabelas de financiamento vigentes na V8"""
        response = await self.token_cache.call_with_token(
            lambda token: self.v8_client.list_simulation_configs(token)
        )
        if not response.ok:
            raise UpstreamError(
                "Erro ao consultar tabelas de simulação",
                detail=response.data,
                upstream_status=response.status,
            )

        data = response.data if isinstance(response.data, dict) else {}
        configs = [
            FinancingConfig.from_dict(item)
            for item in data.get("configs") or []
            if isinstance(item, dict)
        ]
        if not configs:
            raise UpstreamError("Nenhuma tabela de simulação disponível", detail=data)
        return configs
