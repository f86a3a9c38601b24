"""
Business logic service layer.

Turns API client outcomes into the caller-facing ``Result`` envelope,
keeping "no symbols found" distinct from provider and transport failures.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from ..domain.entities import SearchQuery, SearchResponse
from ..domain.exceptions import (
    ApiClientCancelledError,
    ApiClientError,
    ApiClientErrorKind,
    ApiClientUnexpectedError,
)
from ..domain.result import Result, ResultErrorType
from ..infrastructure.search_api_client import ISearchApiClient

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No search symbol(s) found."

# Failure message and category per client error kind. HTTP failures keep
# the client's own message.
_FAILURES: Dict[ApiClientErrorKind, Tuple[Optional[str], ResultErrorType]] = {
    ApiClientErrorKind.HTTP: (None, ResultErrorType.SERVICE_UNAVAILABLE),
    ApiClientErrorKind.TIMEOUT: ("Request timed out", ResultErrorType.TIMEOUT),
    ApiClientErrorKind.DESERIALIZATION: (
        "Invalid response from service",
        ResultErrorType.INVALID_RESPONSE,
    ),
}
_UNKNOWN_FAILURE = ("Symbol search failed unexpectedly", ResultErrorType.UNKNOWN)


class SearchService:
    """
    Symbol search service.

    Outcome mapping:
    - symbols found: success
    - no symbols: NotFound failure
    - HTTP/transport error: ServiceUnavailable failure
    - timeout: Timeout failure
    - unparsable response: InvalidResponse failure
    - any other client error: Unknown failure
    - caller cancellation, unexpected client errors and untyped
      exceptions propagate
    """

    def __init__(self, search_api_client: ISearchApiClient):
        """
        Initialize search service.

        Args:
            search_api_client: Symbol search API client
        """
        if search_api_client is None:
            raise ValueError("search_api_client cannot be None")
        self.search_api_client = search_api_client

    async def search_symbol(
        self,
        query: SearchQuery,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Result[SearchResponse]:
        """
        Search symbols and classify the outcome.

        Args:
            query: Validated search query
            cancel_event: Set by the caller to abandon the request

        Returns:
            Result wrapping the search response

        Raises:
            ValueError: If query is None, or the search endpoint is not configured
            ApiClientCancelledError: If the caller cancelled the request
            ApiClientUnexpectedError: If the client hit an unclassified failure
            Exception: Any error the client did not classify
        """
        if query is None:
            raise ValueError("query cannot be None")

        try:
            response = await self.search_api_client.search_symbol(query, cancel_event)
        except ApiClientCancelledError:
            logger.warning(
                "Symbol search cancelled",
                extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
            )
            raise
        except ApiClientUnexpectedError:
            logger.error(
                "Unexpected client failure while searching symbols",
                extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
                exc_info=True,
            )
            raise
        except ApiClientError as error:
            return self._classify_failure(query, error)
        except Exception:
            logger.error(
                "Unexpected error occurred while searching symbols",
                extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
                exc_info=True,
            )
            raise

        logger.info(
            f"Retrieved {response.total_count} symbols",
            extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
        )

        if response.has_results:
            return Result.success(response)
        return Result.failure(NO_RESULTS_MESSAGE, ResultErrorType.NOT_FOUND)

    def _classify_failure(
        self, query: SearchQuery, error: ApiClientError
    ) -> Result[SearchResponse]:
        message, error_type = _FAILURES.get(error.kind, _UNKNOWN_FAILURE)
        log_fields = {
            "query": query.query,
            "query_id": query.query_id,
            "error_code": error.error_code,
            "error_type": error_type.value,
        }
        if error.kind == ApiClientErrorKind.HTTP:
            log_fields["status_code"] = getattr(error, "status_code", None)

        if error.kind == ApiClientErrorKind.TIMEOUT:
            logger.warning("Request to FinnHub API timed out", extra={"extra_fields": log_fields})
        else:
            logger.error(
                "Symbol search failed",
                extra={"extra_fields": log_fields},
                exc_info=error,
            )

        return Result.failure(message or error.message, error_type)
