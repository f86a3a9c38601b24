"""
Domain entities for symbol search.

Core business objects representing search queries, symbols and search
responses. These entities are framework-agnostic and contain only
business logic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from .exceptions import InvalidLengthError, MissingParameterError, OutOfRangeError

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100
MIN_QUERY_LENGTH = 1
MAX_QUERY_LENGTH = 500

FINNHUB_SOURCE = "finnhub-api"


@dataclass(frozen=True)
class SearchQuery:
    """
    Value object describing one symbol search.

    Constructed once per tool invocation, consumed by the API client and
    discarded afterwards.
    """

    query_id: str
    query: str
    exchange: Optional[str] = None
    limit: int = DEFAULT_LIMIT

    def validate(self) -> None:
        """
        Re-check the invariants of an assembled query.

        Raises:
            OutOfRangeError: If limit is outside [1, 100]
            MissingParameterError: If query is empty or whitespace
            InvalidLengthError: If query is longer than 500 characters
        """
        if self.limit < MIN_LIMIT or self.limit > MAX_LIMIT:
            raise OutOfRangeError("limit", self.limit, MIN_LIMIT, MAX_LIMIT)

        if not self.query or not self.query.strip():
            raise MissingParameterError("query")

        if len(self.query) > MAX_QUERY_LENGTH:
            raise InvalidLengthError("query", self.query, MIN_QUERY_LENGTH, MAX_QUERY_LENGTH)


@dataclass(frozen=True)
class DomainSymbol:
    """Normalized symbol. No field is ever None."""

    symbol: str = ""
    description: str = ""
    display_symbol: str = ""
    type: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "symbol": self.symbol,
            "description": self.description,
            "display_symbol": self.display_symbol,
            "type": self.type,
        }


@dataclass(frozen=True)
class SearchResponse:
    """Outcome of one successful provider round-trip."""

    query: str
    query_id: str
    symbols: Tuple[DomainSymbol, ...] = ()
    search_duration: timedelta = field(default_factory=timedelta)
    search_timestamp: Optional[datetime] = None
    source: str = FINNHUB_SOURCE
    is_from_cache: bool = False

    @property
    def total_count(self) -> int:
        return len(self.symbols)

    @property
    def has_results(self) -> bool:
        return self.total_count > 0

    def to_dict(self) -> Dict[str, Any]:
        """Render the response with snake_case keys for JSON output."""
        return {
            "query": self.query,
            "query_id": self.query_id,
            "symbols": [symbol.to_dict() for symbol in self.symbols],
            "total_count": self.total_count,
            "has_results": self.has_results,
            "search_duration": self.search_duration.total_seconds(),
            "search_timestamp": (
                self.search_timestamp.isoformat() if self.search_timestamp else None
            ),
            "source": self.source,
            "is_from_cache": self.is_from_cache,
        }


@dataclass(frozen=True)
class Exchange:
    """Stock exchange listed on FinnHub."""

    code: str
    name: str
    country_code: str
    country_name: str
    url: str
    mic: Optional[str] = None
    time_zone: Optional[str] = None
    pre_market_hours: Optional[str] = None
    trading_hours: Optional[str] = None
    post_market_hours: Optional[str] = None
    close_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "code": self.code,
            "name": self.name,
            "mic": self.mic,
            "time_zone": self.time_zone,
            "pre_market_hours": self.pre_market_hours,
            "trading_hours": self.trading_hours,
            "post_market_hours": self.post_market_hours,
            "close_date": self.close_date,
            "country_code": self.country_code,
            "country_name": self.country_name,
            "url": self.url,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class ExchangesResponse:
    exchanges: Tuple[Exchange, ...] = ()

    @property
    def total_count(self) -> int:
        return len(self.exchanges)

    @property
    def has_results(self) -> bool:
        return self.total_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exchanges": [exchange.to_dict() for exchange in self.exchanges],
            "total_count": self.total_count,
            "has_results": self.has_results,
        }
