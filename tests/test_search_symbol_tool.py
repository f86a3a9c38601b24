"""
Tests for the search-symbol MCP tool
"""

import json
from typing import Any, Dict
from unittest.mock import AsyncMock

import pytest
from mcp.types import CallToolResult

from finnhub_mcp.domain.exceptions import (
    ApiClientCancelledError,
    ApiClientHttpError,
    ApiClientTimeoutError,
    ApiClientUnexpectedError,
    EndpointNotConfiguredError,
)
from finnhub_mcp.logging_config import get_request_id
from finnhub_mcp.services.search_service import SearchService
from finnhub_mcp.tools.search_symbol import TOOL_NAME, SearchSymbolTool


def _payload(result: CallToolResult) -> Dict[str, Any]:
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return json.loads(result.content[0].text)


@pytest.fixture
def mock_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def tool(mock_client) -> SearchSymbolTool:
    return SearchSymbolTool(SearchService(mock_client))


class TestToolDefinition:
    def test_requires_service(self):
        with pytest.raises(ValueError):
            SearchSymbolTool(None)

    def test_protocol_tool(self, tool):
        definition = tool.protocol_tool

        assert definition.name == TOOL_NAME == "search-symbol"
        assert definition.inputSchema["required"] == ["query"]
        assert definition.inputSchema["properties"]["limit"]["maximum"] == 100
        assert definition.annotations.readOnlyHint is True
        assert definition.annotations.idempotentHint is True


class TestToolSuccess:
    """Test successful invocations"""

    @pytest.mark.asyncio
    async def test_search_aapl(self, tool, mock_client, aapl_response):
        mock_client.search_symbol.return_value = aapl_response

        result = await tool.invoke({"query": "AAPL"})

        assert result.isError is False
        payload = _payload(result)
        assert payload["is_success"] is True
        assert payload["data"]["total_count"] == 1
        assert payload["data"]["symbols"][0] == {
            "symbol": "AAPL",
            "description": "APPLE INC",
            "display_symbol": "AAPL",
            "type": "Common Stock",
        }

        query = mock_client.search_symbol.await_args.args[0]
        assert query.query == "AAPL"
        assert query.exchange is None
        assert query.limit == 10
        assert len(query.query_id) == 10

    @pytest.mark.asyncio
    async def test_arguments_are_normalized(self, tool, mock_client, aapl_response):
        mock_client.search_symbol.return_value = aapl_response

        await tool.invoke({"query": "  apple  ", "exchange": " us ", "limit": "25"})

        query = mock_client.search_symbol.await_args.args[0]
        assert query.query == "apple"
        assert query.exchange == "US"
        assert query.limit == 25

    @pytest.mark.asyncio
    async def test_unparsable_limit_uses_default(self, tool, mock_client, aapl_response):
        mock_client.search_symbol.return_value = aapl_response

        await tool.invoke({"query": "AAPL", "limit": "lots"})

        assert mock_client.search_symbol.await_args.args[0].limit == 10

    @pytest.mark.asyncio
    async def test_request_id_cleared_after_invocation(self, tool, mock_client, aapl_response):
        mock_client.search_symbol.return_value = aapl_response

        await tool.invoke({"query": "AAPL"})

        assert get_request_id() is None


class TestToolFailures:
    """Test failure outcomes rendered by the tool"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arguments,parameter",
        [
            (None, "query"),
            ({}, "query"),
            ({"query": "   "}, "query"),
            ({"query": "AAPL;rm -rf"}, "query"),
            ({"query": "A" * 501}, "query"),
            ({"query": "AAPL", "limit": 0}, "limit"),
            ({"query": "AAPL", "limit": 500}, "limit"),
            ({"query": "AAPL", "exchange": "U.S"}, "exchange"),
        ],
    )
    async def test_validation_errors(self, tool, mock_client, arguments, parameter):
        """Test invalid arguments never reach the client"""
        result = await tool.invoke(arguments)

        assert result.isError is True
        payload = _payload(result)
        assert payload["error"] == "ValidationError"
        assert payload["parameter"] == parameter
        assert payload["message"]
        assert payload["timestamp"]
        mock_client.search_symbol.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, tool, mock_client, empty_response):
        mock_client.search_symbol.return_value = empty_response

        result = await tool.invoke({"query": "ZZZZ"})

        assert result.isError is False
        assert _payload(result) == {
            "is_success": False,
            "error_message": "No search symbol(s) found.",
            "error_type": "NotFound",
        }

    @pytest.mark.asyncio
    async def test_timeout(self, tool, mock_client):
        mock_client.search_symbol.side_effect = ApiClientTimeoutError("deadline")

        payload = _payload(await tool.invoke({"query": "AAPL"}))

        assert payload["error_type"] == "Timeout"
        assert payload["error_message"] == "Request timed out"

    @pytest.mark.asyncio
    async def test_service_unavailable(self, tool, mock_client):
        mock_client.search_symbol.side_effect = ApiClientHttpError(
            "FinnHub API returned error status 503. See logs for more detail.", status_code=503
        )

        payload = _payload(await tool.invoke({"query": "AAPL"}))

        assert payload["error_type"] == "ServiceUnavailable"
        assert "503" in payload["error_message"]

    @pytest.mark.asyncio
    async def test_cancelled(self, tool, mock_client):
        mock_client.search_symbol.side_effect = ApiClientCancelledError("cancelled")

        result = await tool.invoke({"query": "AAPL"})

        assert result.isError is True
        payload = _payload(result)
        assert payload["error"] == "OperationError"
        assert payload["operation"] == "search"
        assert payload["message"] == "Search operation was cancelled."

    @pytest.mark.asyncio
    async def test_endpoint_not_configured(self, tool, mock_client):
        mock_client.search_symbol.side_effect = EndpointNotConfiguredError("search-symbol")

        result = await tool.invoke({"query": "AAPL"})

        assert result.isError is True
        payload = _payload(result)
        assert payload["error"] == "ValidationError"
        assert payload["parameter"] == "endpoint"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ApiClientUnexpectedError("bug"), RuntimeError("boom")])
    async def test_unexpected_errors_propagate(self, tool, mock_client, error):
        mock_client.search_symbol.side_effect = error

        with pytest.raises(type(error)):
            await tool.invoke({"query": "AAPL"})

        assert get_request_id() is None
