"""
External search API client interface.

Defines the contract for symbol search providers.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..domain.entities import SearchQuery, SearchResponse


class ISearchApiClient(ABC):
    """
    Abstract interface for symbol search API clients.

    Implementations surface failures only as ``ApiClientError`` subclasses,
    plus ``EndpointNotConfiguredError`` for configuration defects.
    """

    @abstractmethod
    async def search_symbol(
        self,
        query: SearchQuery,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SearchResponse:
        """
        Search symbols matching the query.

        Args:
            query: Validated search query
            cancel_event: Set by the caller to abandon the request

        Returns:
            Search response, possibly with no symbols

        Raises:
            EndpointNotConfiguredError: If no active search endpoint is configured
            ApiClientError: If the request fails
        """
        pass

    @abstractmethod
    def get_health_status(self) -> dict:
        """
        Get API client health status.

        Returns:
            Dictionary with health metrics (circuit breaker, timeouts, etc.)
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources. Calling it twice is a no-op."""
        pass
