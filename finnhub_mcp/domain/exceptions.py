"""
Custom exceptions for the FinnHub MCP server domain.

Two families live here:

- Input validation errors, raised before any network activity when the
  caller's arguments violate a documented constraint.
- API client errors, the closed set of failures the FinnHub client is
  allowed to surface. Each carries an ``ApiClientErrorKind`` tag so callers
  can classify an outcome without an ``isinstance`` ladder.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class FinnHubMcpException(Exception):
    """Base exception for all FinnHub MCP server errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the exception for structured logs."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(FinnHubMcpException, ValueError):
    """Raised when a tool argument violates a documented constraint."""

    def __init__(self, parameter: str, message: str, value: Any = None):
        self.parameter = parameter
        self.value = value
        super().__init__(
            message=message,
            details={"parameter": parameter, "value": None if value is None else str(value)},
        )


class MissingParameterError(InputValidationError):
    """Raised when a required parameter is absent, empty or whitespace."""

    def __init__(self, parameter: str):
        super().__init__(parameter, f"Required parameter '{parameter}' is missing or empty.")


class InvalidLengthError(InputValidationError):
    """Raised when a string parameter is shorter or longer than allowed."""

    def __init__(self, parameter: str, value: str, min_length: int, max_length: int):
        self.min_length = min_length
        self.max_length = max_length
        if len(value) < min_length:
            message = f"Parameter '{parameter}' must be at least {min_length} characters long."
        else:
            message = f"Parameter '{parameter}' must be at most {max_length} characters long."
        super().__init__(parameter, message, value)


class InvalidCharactersError(InputValidationError):
    """Raised when a string parameter contains characters outside its allowlist."""

    def __init__(self, parameter: str, value: str, allowed: str):
        self.allowed = allowed
        super().__init__(
            parameter,
            f"Parameter '{parameter}' contains invalid characters. Only {allowed} are allowed.",
            value,
        )


class OutOfRangeError(InputValidationError):
    """Raised when a numeric parameter falls outside its inclusive bounds."""

    def __init__(self, parameter: str, value: int, min_value: int, max_value: int):
        self.min_value = min_value
        self.max_value = max_value
        if value < min_value:
            message = f"Parameter '{parameter}' must be at least {min_value}."
        else:
            message = f"Parameter '{parameter}' must be at most {max_value}."
        super().__init__(parameter, message, value)


class MissingQueryError(InputValidationError):
    """Raised when a search query is assembled without a query string."""

    def __init__(self):
        super().__init__("query", "Query is required.")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class EndpointNotConfiguredError(FinnHubMcpException, ValueError):
    """Raised when no active endpoint with the requested name is configured."""

    def __init__(self, endpoint_name: str):
        self.endpoint_name = endpoint_name
        super().__init__(
            message=f"Endpoint '{endpoint_name}' is not configured or inactive",
            details={"endpoint": endpoint_name},
        )


class ClientDisposedError(FinnHubMcpException, RuntimeError):
    """Raised when a closed API client is used."""

    def __init__(self, client_name: str):
        super().__init__(
            message=f"{client_name} has been disposed",
            details={"client": client_name},
        )


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


class ApiClientErrorKind(str, Enum):
    """Closed set of failure kinds produced by API clients."""

    HTTP = "API_CLIENT_HTTP"
    TIMEOUT = "API_CLIENT_TIMEOUT"
    CANCELLED = "API_CLIENT_CANCELLED"
    DESERIALIZATION = "API_CLIENT_DESERIALIZATION"
    UNEXPECTED = "API_CLIENT_UNEXPECTED"


class ApiClientError(FinnHubMcpException):
    """
    Base class for failures surfaced by an external API client.

    Attributes:
        kind: Failure kind tag
        correlation_id: Query id of the request that failed, if known
        source_service: Name of the upstream service
        occurred_at: UTC timestamp of the failure
    """

    kind: ApiClientErrorKind = ApiClientErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        source_service: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.correlation_id = correlation_id
        self.source_service = source_service
        self.occurred_at = datetime.now(timezone.utc)
        details = dict(details or {})
        details.update(
            {
                "error_code": self.error_code,
                "correlation_id": correlation_id,
                "source_service": source_service,
            }
        )
        super().__init__(message=message, details=details)

    @property
    def error_code(self) -> str:
        return self.kind.value


class ApiClientHttpError(ApiClientError):
    """Raised when the provider returns a non-success status or the transport fails."""

    kind = ApiClientErrorKind.HTTP

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        response_content: Optional[str] = None,
        request_uri: Optional[str] = None,
        correlation_id: Optional[str] = None,
        source_service: Optional[str] = None,
    ):
        self.status_code = status_code
        self.response_content = response_content
        self.request_uri = request_uri
        super().__init__(
            message,
            correlation_id=correlation_id,
            source_service=source_service,
            details={"status_code": status_code, "request_uri": request_uri},
        )


class ApiClientTimeoutError(ApiClientError):
    """Raised when a request exceeds its deadline."""

    kind = ApiClientErrorKind.TIMEOUT


class ApiClientCancelledError(ApiClientError):
    """Raised when the caller cancels a request."""

    kind = ApiClientErrorKind.CANCELLED


class ApiClientDeserializationError(ApiClientError):
    """Raised when a provider response is not the expected JSON."""

    kind = ApiClientErrorKind.DESERIALIZATION

    def __init__(
        self,
        message: str,
        response_content: Optional[str] = None,
        correlation_id: Optional[str] = None,
        source_service: Optional[str] = None,
    ):
        self.response_content = response_content
        super().__init__(
            message, correlation_id=correlation_id, source_service=source_service
        )


class ApiClientUnexpectedError(ApiClientError):
    """Raised for failures that fit no other client error kind."""

    kind = ApiClientErrorKind.UNEXPECTED


class CircuitBreakerOpenException(FinnHubMcpException):
    """Raised when circuit breaker is open (too many failures)."""

    def __init__(
        self, service: str, failure_count: int, retry_after: Optional[int] = None
    ):
        self.service = service
        self.retry_after = retry_after
        message = f"Circuit breaker open for '{service}' after {failure_count} failures"
        if retry_after:
            message += f". Retry after {retry_after} seconds"
        super().__init__(
            message=message,
            details={
                "service": service,
                "failure_count": failure_count,
                "retry_after": retry_after,
            },
        )
