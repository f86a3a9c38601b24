"""
Test configuration and fixtures
"""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from finnhub_mcp.config import FinnHubSettings
from finnhub_mcp.domain.entities import DomainSymbol, SearchQuery, SearchResponse
from finnhub_mcp.infrastructure.finnhub_client import FinnHubSearchApiClient

TEST_BASE_URL = "https://finnhub.test/api/v1"
TEST_API_KEY = "test-token"

AAPL_SEARCH_BODY: Dict[str, Any] = {
    "count": 1,
    "result": [
        {
            "description": "APPLE INC",
            "displaySymbol": "AAPL",
            "symbol": "AAPL",
            "type": "Common Stock",
        }
    ],
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def make_settings(**overrides) -> FinnHubSettings:
    """Settings pointing at a fake host, with zero retry backoff."""
    values: Dict[str, Any] = {
        "API_KEY": TEST_API_KEY,
        "BASE_URL": TEST_BASE_URL,
        "RETRY_BACKOFF_MULTIPLIER": 0,
    }
    values.update(overrides)
    return FinnHubSettings(_env_file=None, **values)


def json_handler(body: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return handler


@pytest.fixture
def settings() -> FinnHubSettings:
    """Test settings"""
    return make_settings()


@pytest.fixture
def make_client(settings: FinnHubSettings):
    """
    Factory building a FinnHub client on a recording mock transport.

    Returns:
        Callable taking a request handler and optional settings, returning
        ``(client, transport)``
    """

    def factory(
        handler: Callable[[httpx.Request], Any],
        client_settings: Optional[FinnHubSettings] = None,
    ):
        transport = RecordingTransport(handler)
        client = FinnHubSearchApiClient(client_settings or settings, transport=transport)
        return client, transport

    return factory


@pytest.fixture
def aapl_query() -> SearchQuery:
    """Sample validated query"""
    return SearchQuery(query_id="abc123def4", query="AAPL", limit=10)


@pytest.fixture
def aapl_response() -> SearchResponse:
    """Sample search response with one symbol"""
    return SearchResponse(
        query="AAPL",
        query_id="abc123def4",
        symbols=(
            DomainSymbol(
                symbol="AAPL",
                description="APPLE INC",
                display_symbol="AAPL",
                type="Common Stock",
            ),
        ),
    )


@pytest.fixture
def empty_response() -> SearchResponse:
    """Sample search response without symbols"""
    return SearchResponse(query="ZZZZ", query_id="abc123def4")
