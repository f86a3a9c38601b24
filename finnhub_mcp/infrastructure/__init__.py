"""
Infrastructure layer - External API clients and fault tolerance.
"""

from .circuit_breaker import CircuitBreaker, CircuitState
from .finnhub_client import FinnHubSearchApiClient, build_circuit_breaker
from .search_api_client import ISearchApiClient

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "FinnHubSearchApiClient",
    "ISearchApiClient",
    "build_circuit_breaker",
]
