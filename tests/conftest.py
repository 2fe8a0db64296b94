"""
Pytest configuration and fixtures for the DHL eCommerce client tests.
"""
import json
from typing import Callable, List
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

from dhl_ecommerce.core.config import ClientOptions
from dhl_ecommerce.core.token_cache import TokenCache
from dhl_ecommerce.services.dhl_client import DHLEcommerceClient

BASE_URL = "https://api-sandbox.dhlecs.com"
CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret"

TOKEN_RESPONSE = {
    "access_token": "test-access-token",
    "client_id": CLIENT_ID,
    "token_type": "Bearer",
    "expires_in": 3600,
}


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CarrierStub:
    """
    httpx.MockTransport handler standing in for the carrier.

    Token requests get TOKEN_RESPONSE; everything else is routed to
    api_handler (default: 200 echoing the path).
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_body = dict(TOKEN_RESPONSE)
        self.api_handler: Callable[[httpx.Request], httpx.Response] = self._echo

    @staticmethod
    def _echo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"path": request.url.path, "query": str(request.url.query, "ascii")})

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/auth/v4/accesstoken"]

    @property
    def api_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/auth/v4/accesstoken"]

    @staticmethod
    def form(request: httpx.Request) -> dict:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    @staticmethod
    def json(request: httpx.Request):
        return json.loads(request.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/auth/v4/accesstoken":
            return httpx.Response(self.token_status, json=self.token_body)
        return self.api_handler(request)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_cache(clock) -> TokenCache:
    return TokenCache(clock=clock)


@pytest.fixture
def options() -> ClientOptions:
    return ClientOptions.create(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        environment_url=BASE_URL,
    )


@pytest.fixture
def carrier() -> CarrierStub:
    return CarrierStub()


@pytest_asyncio.fixture
async def client(options, token_cache, carrier):
    """Client wired to the carrier stub."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(carrier))
    dhl_client = DHLEcommerceClient(options, token_cache=token_cache, http_client=http_client)
    yield dhl_client
    await dhl_client.close()
    await http_client.aclose()


@pytest.fixture
def shipping_request() -> dict:
    """Products request with a bulky package."""
    return {
        "consigneeAddress": {
            "address1": "114 Whitney Ave",
            "city": "New Haven",
            "country": "US",
            "name": "John Doe",
            "postalCode": "06510",
            "state": "CT",
        },
        "distributionCenter": "USDFW1",
        "packageDetail": {
            "packageDescription": "ORDER NO 20483739DFDR",
            "packageId": "GM60511234500000001",
            "weight": {"unitOfMeasure": "LB", "value": 5},
            "dimension": {"unitOfMeasure": "IN", "length": 14, "width": 14, "height": 14},
        },
        "pickup": "5351244",
        "rate": {"calculate": True, "currency": "USD"},
    }
