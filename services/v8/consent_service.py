import logging
import re
from apis.helpers.v8_payloads import build_consult_payload
from models.v8.models import Identity
from services.v8.exceptions import UpstreamError, ValidationError
from services.v8.token_cache import V8TokenCache

logger = logging.getLogger(__name__)

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ConsentRegistrar:
    """Geração e autorização do termo de consentimento do tomador"""

    def __init__(self, client, token_cache: V8TokenCache, provider: str = "QI"):
        self.client = client
        self.token_cache = token_cache
        self.provider = provider

    async def create_term(self, identity: Identity) -> str:
        """
        Cria o termo na V8 e retorna o id gerado. Chamadas repetidas criam
        termos distintos.
        """
        if not identity.birth_date or not ISO_DATE.match(identity.birth_date):
            raise ValidationError(
                f"Data de nascimento ausente ou inválida para o CPF {identity.cpf}"
            )

        payload = build_consult_payload(identity, provider=self.provider)
        response = await self.token_cache.call_with_token(
            lambda token: self.client.create_consult(token, payload)
        )
        if not response.ok:
            logger.error(f"Erro ao gerar termo: {response.status} {response.data}")
            raise UpstreamError(
                "Erro ao gerar termo de consentimento",
                detail=response.data,
                upstream_status=response.status,
            )

        data = response.data if isinstance(response.data, dict) else {}
        term_id = data.get("id")
        if not term_id:
            raise UpstreamError("Resposta da V8 sem id do termo", detail=response.data)

        logger.info(f"Termo gerado: {term_id}")
        return str(term_id)

    async def authorize_term(self, term_id: str) -> None:
        response = await self.token_cache.call_with_token(
            lambda token: self.client.authorize_consult(token, term_id)
        )
        if not response.ok:
            logger.error(f"Erro ao autorizar termo {term_id}: {response.data}")
            raise UpstreamError(
                "Erro ao autorizar termo de consentimento",
                detail=response.data,
                upstream_status=response.status,
            )
        logger.info(f"Termo autorizado: {term_id}")
