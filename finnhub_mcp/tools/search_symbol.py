"""
The ``search-symbol`` MCP tool.

Orchestrates one invocation: raw arguments -> input validation -> query
assembly -> search service -> content block. Validation failures and
caller cancellation become structured error blocks; anything else is a
bug and propagates to the transport.
"""

import asyncio
import time
from typing import Any, Dict, Mapping, Optional

import structlog
from mcp.types import CallToolResult, Tool, ToolAnnotations

from ..domain.exceptions import (
    ApiClientCancelledError,
    EndpointNotConfiguredError,
    InputValidationError,
)
from ..logging_config import clear_request_id, set_request_id
from ..metrics import record_tool_invocation, search_results_per_query
from ..services.query_builder import build_search_query
from ..services.search_service import SearchService
from ..validators import (
    validate_and_get_exchange,
    validate_and_get_limit,
    validate_and_get_query,
)
from .responses import (
    create_operation_error_response,
    create_success_response,
    create_validation_error_response,
)

logger = structlog.get_logger(__name__)

TOOL_NAME = "search-symbol"
TOOL_TITLE = "Search Symbol"
TOOL_DESCRIPTION = """\
Search for best-matching symbols based on your query. You can input anything \
from a stock ticker, security name, ISIN, or CUSIP.

## Example Queries:
- query='apple', exchange='US'
- query='US5949181045'
- query='AAPL'

## Request Parameters:
- query (string, required): Symbol, Company Name, ISIN, or CUSIP
- exchange (string, optional): Exchange code (e.g., 'US', 'TO', etc.)
- limit (integer, optional): Maximum number of results (default: 10, max: 100)

## Response Fields:
- is_success (bool): Whether symbols were found
- data.symbols (array): symbol, display_symbol, description, type
- data.total_count (int): Number of matching results
- error_message / error_type: Present when is_success is false
"""

INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": "Query string, e.g., ticker, company name, ISIN, or CUSIP.",
        },
        "exchange": {
            "type": "string",
            "description": "Optional exchange, e.g., US.",
        },
        "limit": {
            "type": "integer",
            "description": "Maximum number of results to return (default: 10, max: 100).",
            "minimum": 1,
            "maximum": 100,
        },
    },
    "required": ["query"],
}


class SearchSymbolTool:
    """Transport-facing entry point for symbol search."""

    name = TOOL_NAME

    def __init__(self, search_service: SearchService):
        if search_service is None:
            raise ValueError("search_service cannot be None")
        self.search_service = search_service

    @property
    def protocol_tool(self) -> Tool:
        """MCP tool definition advertised by ``tools/list``."""
        return Tool(
            name=TOOL_NAME,
            title=TOOL_TITLE,
            description=TOOL_DESCRIPTION,
            inputSchema=INPUT_SCHEMA,
            annotations=ToolAnnotations(
                title=TOOL_TITLE,
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
        )

    async def invoke(
        self,
        arguments: Optional[Mapping[str, Any]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CallToolResult:
        """
        Run one search.

        Args:
            arguments: Raw tool arguments
            cancel_event: Set by the transport to abandon the search

        Returns:
            Success block with the JSON result envelope, or a
            ValidationError / OperationError block

        Raises:
            Exception: Anything that indicates a bug rather than a handled condition
        """
        start_time = time.perf_counter()
        outcome = "aborted"
        logger.debug("Starting tool execution", tool=TOOL_NAME)

        try:
            query = validate_and_get_query(arguments)
            limit = validate_and_get_limit(arguments)
            exchange = validate_and_get_exchange(arguments)
            logger.debug(
                "Executing search",
                tool=TOOL_NAME,
                query=query,
                exchange=exchange,
                limit=limit,
            )

            search_query = build_search_query(query, exchange=exchange, limit=limit)
            set_request_id(search_query.query_id)

            result = await self.search_service.search_symbol(search_query, cancel_event)

            total_count = result.data.total_count if result.data else 0
            search_results_per_query.observe(total_count)
            outcome = "success" if result.is_success else result.error_type.value
            logger.info(
                "Search completed",
                tool=TOOL_NAME,
                is_success=result.is_success,
                error_type=result.error_type.value if result.error_type else None,
                total_count=total_count,
                elapsed_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return create_success_response(result.to_dict())

        except InputValidationError as error:
            outcome = "validation_error"
            logger.warning(
                "Validation error",
                tool=TOOL_NAME,
                parameter=error.parameter,
                message=error.message,
            )
            return create_validation_error_response(error.parameter, error.message)

        except EndpointNotConfiguredError as error:
            outcome = "validation_error"
            logger.error("Search endpoint not configured", tool=TOOL_NAME, message=error.message)
            return create_validation_error_response("endpoint", error.message)

        except ApiClientCancelledError:
            outcome = "cancelled"
            logger.warning("Search operation was cancelled", tool=TOOL_NAME)
            return create_operation_error_response("search", "Search operation was cancelled.")

        except Exception:
            outcome = "fault"
            logger.error("An exception occurred running tool", tool=TOOL_NAME, exc_info=True)
            raise

        finally:
            elapsed = time.perf_counter() - start_time
            record_tool_invocation(TOOL_NAME, outcome, elapsed)
            logger.debug(
                "Finished tool execution",
                tool=TOOL_NAME,
                outcome=outcome,
                elapsed_ms=round(elapsed * 1000, 2),
            )
            clear_request_id()
