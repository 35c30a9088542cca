"""Pytest fixtures and fakes for the V8 simulation flow"""

import asyncio
import pytest
from typing import Any, Callable, Dict, List, Optional
from models.v8.models import ApiResponse
from services.v8.token_cache import V8TokenCache


class FakeAuthClient:
    """Identity provider double: counts logins and hands out numbered tokens"""

    def __init__(self, status: int = 200, delay: float = 0.0):
        self.status = status
        self.delay = delay
        self.calls = 0

    async def request_token(self) -> ApiResponse:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.status != 200:
            return ApiResponse(status=self.status, data={"error": "invalid_grant"})
        return ApiResponse(status=200, data={"access_token": f"token-{self.calls}"})


class FakeV8Client(FakeAuthClient):
    """Scriptable stand-in for V8ApiClient that records every call"""

    def __init__(self):
        super().__init__()
        self.requests: List[tuple] = []
        self.consult_response = ApiResponse(status=201, data={"id": "term-1"})
        self.authorize_response = ApiResponse(status=200, data={})
        self.search_responses: List[ApiResponse] = []
        self.configs_response = ApiResponse(
            status=200,
            data={"configs": [{"id": "cfg-1", "number_of_installments": ["6", "12", "24"]}]},
        )
        self.simulation_handler: Callable[[Dict[str, Any]], ApiResponse] = (
            lambda payload: ApiResponse(status=201, data=dict(payload))
        )

    async def create_consult(self, token: str, payload: Dict[str, Any]) -> ApiResponse:
        self.requests.append(("create_consult", token, payload))
        return self.consult_response

    async def authorize_consult(self, token: str, consult_id: str) -> ApiResponse:
        self.requests.append(("authorize_consult", token, consult_id))
        return self.authorize_response

    async def search_consults(self, token: str, params: Dict[str, Any]) -> ApiResponse:
        self.requests.append(("search_consults", token, params))
        if len(self.search_responses) > 1:
            return self.search_responses.pop(0)
        return self.search_responses[0]

    async def list_simulation_configs(self, token: str) -> ApiResponse:
        self.requests.append(("list_simulation_configs", token, None))
        return self.configs_response

    async def create_simulation(self, token: str, payload: Dict[str, Any]) -> ApiResponse:
        self.requests.append(("create_simulation", token, payload))
        return self.simulation_handler(payload)

    def calls_to(self, name: str) -> List[tuple]:
        return [request for request in self.requests if request[0] == name]


class FakePessoasClient:
    def __init__(self, person: Optional[Dict[str, Any]] = None):
        self.person = person
        self.lookups: List[str] = []

    async def get_person_by_cpf(self, cpf: str) -> Optional[Dict[str, Any]]:
        self.lookups.append(cpf)
        return self.person


def consult_entry(term_id="term-1", margin="1000.00", status="SUCCESS", description=None):
    return {
        "id": term_id,
        "availableMarginValue": margin,
        "status": status,
        "description": description,
    }


def search_response(*entries) -> ApiResponse:
    return ApiResponse(status=200, data={"data": list(entries)})


@pytest.fixture
def v8_client() -> FakeV8Client:
    return FakeV8Client()


@pytest.fixture
def token_cache(v8_client) -> V8TokenCache:
    return V8TokenCache(v8_client)


@pytest.fixture
def fake_sleep():
    """Records requested delays instead of waiting"""
    delays: List[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def person() -> Dict[str, Any]:
    return {
        "cpf": "12345678909",
        "name": "MARIA DA SILVA",
        "birthDate": "15/03/1988",
        "gender": "F",
        "email": "maria@example.com",
        "phone": "71988887777",
    }
