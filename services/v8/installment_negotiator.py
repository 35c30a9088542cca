import logging
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, List, Optional
from apis.helpers.v8_payloads import build_simulation_payload
from models.v8.models import FinancingConfig, SimulationResult
from services.v8.error_classifier import (
    SimulationFailure,
    classify_simulation_failure,
    failure_reason,
)
from services.v8.exceptions import UpstreamError
from services.v8.token_cache import V8TokenCache

logger = logging.getLogger(__name__)

MAX_TOTAL = Decimal("25000")
MIN_DISBURSEMENT = Decimal("800")
CENTS = Decimal("0.01")


def config_variants(configs: List[FinancingConfig]) -> List[FinancingConfig]:
    """Tabela principal seguida da primeira alternativa sem seguro, se houver."""
    if not configs:
        return []
    primary = configs[0]
    variants = [primary]
    for config in configs[1:]:
        if not config.has_insurance and config.id != primary.id:
            variants.append(config)
            break
    return variants


def installment_amounts(margin: Decimal, installments: int):
    """Valor da parcela (limitado pela margem e pelo teto da operação) e total."""
    per_installment = min(margin, MAX_TOTAL / installments).quantize(
        CENTS, rounding=ROUND_DOWN
    )
    return per_installment, per_installment * installments


def _as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class InstallmentNegotiator:
    def __init__(self, client, token_cache: V8TokenCache, provider: str = "QI"):
        self.client = client
        self.token_cache = token_cache
        self.provider = provider

    async def negotiate(
        self,
        term_id: str,
        configs: List[FinancingConfig],
        available_margin: float,
    ) -> Optional[SimulationResult]:
        """
        Procura a simulação aceita pela V8 com o maior número de parcelas.

        Retorna None quando nenhuma combinação de tabela e prazo é viável.
        Levanta UpstreamError para qualquer erro fora do vocabulário conhecido.
        """
        margin = Decimal(str(available_margin))

        for config in config_variants(configs):
            outcome = await self._search_config(term_id, config, margin)
            if outcome is SimulationFailure.INSURANCE:
                logger.info(
                    f"Tabela {config.id} exige seguro, tentando tabela sem seguro"
                )
                continue
            return outcome

        logger.info(f"Nenhuma parcela viável para o termo {term_id}")
        return None

    async def _search_config(self, term_id: str, config: FinancingConfig, margin: Decimal):
        for installments in sorted(set(config.number_of_installments), reverse=True):
            if installments <= 0:
                continue
            per_installment, total = installment_amounts(margin, installments)
            if total < MIN_DISBURSEMENT:
                logger.debug(
                    f"{installments}x de {per_installment} abaixo do mínimo, ignorando"
                )
                continue

            payload = build_simulation_payload(
                term_id, config.id, float(per_installment), installments, self.provider
            )
            logger.info(f"Simulando {installments}x de R${per_installment} (tabela {config.id})")
            response = await self.token_cache.call_with_token(
                lambda token: self.client.create_simulation(token, payload)
            )

            if response.ok:
                return self._build_result(response.data, config, installments, per_installment, total)

            failure = classify_simulation_failure(response.data)
            if failure is SimulationFailure.NONVIABLE:
                logger.info(
                    f"{installments}x recusado: {failure_reason(response.data)}"
                )
                continue
            if failure is SimulationFailure.INSURANCE:
                return failure

            logger.error(f"Erro inesperado na simulação: {response.data}")
            raise UpstreamError(
                "Erro ao criar simulação",
                detail=response.data,
                upstream_status=response.status,
            )
        return None

    @staticmethod
    def _build_result(
        data: Any,
        config: FinancingConfig,
        installments: int,
        per_installment: Decimal,
        total: Decimal,
    ) -> SimulationResult:
        raw: Dict[str, Any] = data if isinstance(data, dict) else {}
        body = raw.get("data") if isinstance(raw.get("data"), dict) else raw

        return SimulationResult(
            requested_amount=float(total),
            installment_count=installments,
            installment_value=_as_float(
                body.get("installment_value"), float(per_installment)
            ),
            disbursed_amount=_as_float(
                body.get("disbursed_amount", body.get("disbursement_amount")),
                float(total),
            ),
            annual_cost_rate=_as_float(body.get("annual_cet", body.get("cet_annual"))),
            config_id=config.id,
            raw=raw,
        )
