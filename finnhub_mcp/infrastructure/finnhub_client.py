"""
FinnHub API client implementation.

Provides symbol search with circuit breaker, retry logic and typed error
translation. Every failure leaving this module is one of the
``ApiClientError`` subclasses, or ``EndpointNotConfiguredError`` when the
deployment is missing its search endpoint.
"""

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..config import SEARCH_SYMBOL_ENDPOINT, FinnHubSettings
from ..domain.entities import FINNHUB_SOURCE, SearchQuery, SearchResponse
from ..domain.exceptions import (
    ApiClientCancelledError,
    ApiClientDeserializationError,
    ApiClientError,
    ApiClientHttpError,
    ApiClientTimeoutError,
    ApiClientUnexpectedError,
    CircuitBreakerOpenException,
    ClientDisposedError,
    EndpointNotConfiguredError,
)
from ..metrics import record_provider_call
from .circuit_breaker import CircuitBreaker
from .dtos import ProviderSearchResponse, ProviderSymbol, to_domain_symbol
from .retry_policy import build_retry_policy, is_retryable_response
from .search_api_client import ISearchApiClient

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Finnhub-Token"
USER_AGENT = "FinnHub-MCP-Server/1.0"
HEALTH_CHECK_PATH = "quote?symbol=IBM"


def _is_breaker_failure(error: BaseException) -> bool:
    # Timeouts are retried but do not trip the breaker
    return isinstance(error, httpx.TransportError) and not isinstance(
        error, httpx.TimeoutException
    )


def build_circuit_breaker(settings: FinnHubSettings, name: str = "finnhub") -> CircuitBreaker:
    """Create the breaker shared by every request sent to one FinnHub base URL."""
    return CircuitBreaker(
        failure_threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
        recovery_timeout=settings.CIRCUIT_BREAKER_RECOVERY_SECONDS,
        name=name,
        is_handled_exception=_is_breaker_failure,
        is_failure_result=is_retryable_response,
    )


class FinnHubSearchApiClient(ISearchApiClient):
    """
    FinnHub symbol search client with fault tolerance.

    Features:
    - Persistent httpx.AsyncClient with a bounded connection pool
    - Automatic retry with exponential backoff
    - Circuit breaker shared across concurrent requests
    - Caller cancellation distinct from deadline expiry

    The API key travels in the ``X-Finnhub-Token`` header so request URIs
    can be logged safely.
    """

    def __init__(
        self,
        settings: FinnHubSettings,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the FinnHub client.

        Args:
            settings: Resolved FinnHub settings
            circuit_breaker: Breaker shared with other clients of the same
                upstream; a dedicated one is created when omitted
            transport: Optional httpx transport (used by tests)

        Raises:
            ValueError: If settings are missing
        """
        if settings is None:
            raise ValueError("FinnHub settings cannot be None")

        self._settings = settings
        self._transport = transport
        self.circuit_breaker = circuit_breaker or build_circuit_breaker(settings)
        self._retry_policy = build_retry_policy(
            max_retries=settings.MAX_RETRIES,
            backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._disposed = False

        logger.info(
            f"Initialized FinnHubSearchApiClient: base_url={settings.BASE_URL}, "
            f"timeout={settings.TIMEOUT_SECONDS}s"
        )

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the persistent HTTP client with connection pooling.

        Raises:
            ClientDisposedError: If the client was closed
        """
        self._ensure_not_disposed()
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(float(self._settings.TIMEOUT_SECONDS)),
                limits=httpx.Limits(
                    max_connections=self._settings.MAX_CONNECTIONS,
                    max_keepalive_connections=self._settings.MAX_CONNECTIONS,
                    keepalive_expiry=300.0,
                ),
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                transport=self._transport,
            )
            logger.debug("Created new HTTP client with connection pooling")
        return self._client

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise ClientDisposedError(type(self).__name__)

    async def aclose(self) -> None:
        """
        Close the HTTP client and release connections.

        Should be called once during application shutdown; later calls are no-ops.
        """
        if self._disposed:
            return
        self._disposed = True
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.debug("FinnHubSearchApiClient disposed")

    async def search_symbol(
        self,
        query: SearchQuery,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SearchResponse:
        """
        Search FinnHub for symbols matching the query.

        Args:
            query: Validated search query
            cancel_event: Set by the caller to abandon the request

        Returns:
            Search response; an empty symbol list is a valid result

        Raises:
            ValueError: If query is None
            ClientDisposedError: If the client was closed
            EndpointNotConfiguredError: If no active search endpoint is configured
            ApiClientError: If the request fails
        """
        if query is None:
            raise ValueError("query cannot be None")
        self._ensure_not_disposed()

        start_time = time.perf_counter()
        search_timestamp = datetime.now(timezone.utc)
        status = "success"

        logger.info(
            "Starting symbol search",
            extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
        )

        try:
            endpoint = self._get_search_endpoint()
            request_uri = self._build_request_uri(endpoint, query)

            logger.info(
                "Requesting search symbols from FinnHub API",
                extra={"extra_fields": {"request_uri": request_uri}},
            )

            response = await self._send(request_uri, query, cancel_event)
            provider_symbols = self._process_response(response, request_uri, query)

            return SearchResponse(
                query=query.query,
                query_id=query.query_id,
                symbols=tuple(to_domain_symbol(symbol) for symbol in provider_symbols),
                search_duration=datetime.now(timezone.utc) - search_timestamp,
                search_timestamp=search_timestamp,
                source=FINNHUB_SOURCE,
            )

        except EndpointNotConfiguredError:
            status = "not_configured"
            raise
        except ApiClientError as error:
            status = error.kind.value.lower()
            raise
        except Exception as error:
            status = "unexpected"
            logger.error(
                "Unexpected error during symbol search",
                extra={"extra_fields": {"query": query.query, "query_id": query.query_id}},
                exc_info=True,
            )
            raise ApiClientUnexpectedError(
                f"Unexpected error during symbol search: {query.query}",
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            ) from error
        finally:
            record_provider_call(
                SEARCH_SYMBOL_ENDPOINT, status, time.perf_counter() - start_time
            )

    def _get_search_endpoint(self) -> str:
        endpoint = self._settings.get_endpoint(SEARCH_SYMBOL_ENDPOINT)
        if endpoint is None or not endpoint.url.strip():
            raise EndpointNotConfiguredError(SEARCH_SYMBOL_ENDPOINT)
        return endpoint.url

    def _build_request_uri(self, endpoint: str, query: SearchQuery) -> str:
        """Build ``{base_url}/{endpoint}?q=...[&exchange=...]``."""
        base_url = self._settings.BASE_URL.rstrip("/")
        request_uri = f"{base_url}/{endpoint.lstrip('/')}?q={quote(query.query, safe='')}"
        if query.exchange and query.exchange.strip():
            request_uri += f"&exchange={quote(query.exchange, safe='')}"
        return request_uri

    async def _send(
        self,
        request_uri: str,
        query: SearchQuery,
        cancel_event: Optional[asyncio.Event],
    ) -> httpx.Response:
        """
        Send the request through the circuit breaker and retry policy.

        Transport-level outcomes are translated into typed client errors here;
        the returned response may still carry a non-success status.
        """
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(
                "Symbol search operation was cancelled",
                extra={"extra_fields": {"request_uri": request_uri}},
            )
            raise ApiClientCancelledError(
                f"Symbol search cancelled: {request_uri}",
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            )

        try:
            request_call = self.circuit_breaker.call(self._send_with_retry, request_uri)
            if cancel_event is None:
                return await request_call
            return await self._race_cancellation(request_call, cancel_event, request_uri, query)

        except CircuitBreakerOpenException as error:
            logger.warning(
                "FinnHub API circuit is open, request not sent",
                extra={"extra_fields": {"request_uri": request_uri, "retry_after": error.retry_after}},
            )
            raise ApiClientHttpError(
                "FinnHub API is temporarily unavailable (circuit open)",
                status_code=503,
                request_uri=request_uri,
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            ) from error

        except httpx.TimeoutException as error:
            logger.error(
                "Symbol search request timed out",
                extra={
                    "extra_fields": {
                        "request_uri": request_uri,
                        "timeout": self._settings.TIMEOUT_SECONDS,
                        "error_type": type(error).__name__,
                    }
                },
            )
            raise ApiClientTimeoutError(
                f"Symbol search timed out: {request_uri}",
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            ) from error

        except httpx.RequestError as error:
            logger.error(
                "HTTP request to FinnHub API failed",
                extra={
                    "extra_fields": {
                        "request_uri": request_uri,
                        "error_type": type(error).__name__,
                        "error_message": str(error),
                    }
                },
            )
            raise ApiClientHttpError(
                f"HTTP request to FinnHub API failed: {request_uri}",
                status_code=500,
                request_uri=request_uri,
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            ) from error

    async def _race_cancellation(
        self,
        request_call,
        cancel_event: asyncio.Event,
        request_uri: str,
        query: SearchQuery,
    ) -> httpx.Response:
        """Await the request unless the caller's cancel event fires first."""
        request_task = asyncio.ensure_future(request_call)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if request_task in done:
            return request_task.result()

        request_task.cancel()
        await asyncio.gather(request_task, return_exceptions=True)

        logger.warning(
            "Symbol search operation was cancelled",
            extra={"extra_fields": {"request_uri": request_uri}},
        )
        raise ApiClientCancelledError(
            f"Symbol search cancelled: {request_uri}",
            correlation_id=query.query_id,
            source_service=FINNHUB_SOURCE,
        )

    async def _send_with_retry(self, request_uri: str) -> httpx.Response:
        return await self._retry_policy.copy()(self._send_once, request_uri)

    async def _send_once(self, request_uri: str) -> httpx.Response:
        headers = {}
        if self._settings.API_KEY.strip():
            headers[API_KEY_HEADER] = self._settings.API_KEY
        return await self._get_client().get(request_uri, headers=headers)

    def _process_response(
        self, response: httpx.Response, request_uri: str, query: SearchQuery
    ) -> List[ProviderSymbol]:
        body = response.text

        if not response.is_success:
            status_code = response.status_code
            log_fields = {"status_code": status_code, "response_body": body[:500]}
            if 400 <= status_code < 500:
                logger.warning("Client error from FinnHub API", extra={"extra_fields": log_fields})
            else:
                logger.error("Server error from FinnHub API", extra={"extra_fields": log_fields})

            raise ApiClientHttpError(
                f"FinnHub API returned error status {status_code}. See logs for more detail.",
                status_code=status_code,
                response_content=body,
                request_uri=request_uri,
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            )

        return self._deserialize(body, request_uri, query)

    def _deserialize(
        self, body: str, request_uri: str, query: SearchQuery
    ) -> List[ProviderSymbol]:
        try:
            payload = json.loads(body)
            if payload is None:
                parsed = ProviderSearchResponse()
            else:
                parsed = ProviderSearchResponse.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as error:
            logger.error(
                "Failed to deserialize FinnHub API response",
                extra={
                    "extra_fields": {
                        "request_uri": request_uri,
                        "correlation_id": query.query_id,
                        "error_type": type(error).__name__,
                    }
                },
            )
            raise ApiClientDeserializationError(
                "Invalid JSON returned from FinnHub API.",
                response_content=body,
                correlation_id=query.query_id,
                source_service=FINNHUB_SOURCE,
            ) from error

        if not parsed.result:
            logger.info(
                "FinnHub returned no results",
                extra={"extra_fields": {"request_uri": request_uri}},
            )
            return []

        return list(parsed.result)

    def get_health_status(self) -> dict:
        """Get client health status."""
        endpoint = self._settings.get_endpoint(SEARCH_SYMBOL_ENDPOINT)
        return {
            "service": FINNHUB_SOURCE,
            "base_url": self._settings.BASE_URL,
            "search_endpoint": endpoint.url if endpoint else None,
            "circuit_breaker": self.circuit_breaker.get_status(),
            "timeout_seconds": self._settings.TIMEOUT_SECONDS,
            "max_retries": self._settings.MAX_RETRIES,
            "disposed": self._disposed,
        }

    async def check_health(self) -> dict:
        """
        Probe the FinnHub API with a lightweight quote request.

        Bypasses retry and circuit breaker so the probe reflects the
        upstream's current state.

        Returns:
            ``{"status": "healthy" | "unhealthy" | "degraded", "detail": str}``
        """
        headers = {}
        if self._settings.API_KEY.strip():
            headers[API_KEY_HEADER] = self._settings.API_KEY

        try:
            response = await self._get_client().get(
                f"{self._settings.BASE_URL}/{HEALTH_CHECK_PATH}", headers=headers
            )
        except httpx.TimeoutException:
            return {"status": "degraded", "detail": "FinnHub API request timed out."}
        except httpx.RequestError as error:
            logger.warning(
                "FinnHub health check failed",
                extra={"extra_fields": {"error_type": type(error).__name__}},
            )
            return {"status": "unhealthy", "detail": "Exception occurred while accessing FinnHub API."}

        if response.is_success:
            return {"status": "healthy", "detail": "FinnHub API is reachable."}
        return {
            "status": "unhealthy",
            "detail": f"FinnHub API returned status code {response.status_code}.",
        }
