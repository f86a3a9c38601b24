"""
The ``finnhub://resources/exchanges`` MCP resource.

Serves a static catalogue of exchanges listed on FinnHub.
"""

import json
from typing import Tuple

from mcp.types import Annotations, Resource

from ..domain.entities import Exchange, ExchangesResponse
from ..domain.result import Result

EXCHANGES_RESOURCE_URI = "finnhub://resources/exchanges"
EXCHANGES_RESOURCE_NAME = "get-exchanges"
EXCHANGES_MIME_TYPE = "application/json"

# TODO: load the catalogue from FinnHub's /stock/exchange endpoint once the
# account tier in use exposes it.
EXCHANGES: Tuple[Exchange, ...] = (
    Exchange(
        code="US",
        name="US exchanges (NYSE, Nasdaq)",
        mic="XNYS",
        time_zone="America/New_York",
        pre_market_hours="04:00-09:30",
        trading_hours="09:30-16:00",
        post_market_hours="16:00-20:00",
        country_code="US",
        country_name="United States",
        url="https://www.tradinghours.com/markets/nyse",
    ),
    Exchange(
        code="L",
        name="London Stock Exchange",
        mic="XLON",
        time_zone="Europe/London",
        trading_hours="08:00-16:30",
        country_code="GB",
        country_name="United Kingdom",
        url="https://www.tradinghours.com/exchanges/lse",
    ),
    Exchange(
        code="DE",
        name="Xetra",
        mic="XETR",
        time_zone="Europe/Berlin",
        trading_hours="09:00-17:30",
        country_code="DE",
        country_name="Germany",
        url="https://www.tradinghours.com/markets/xetra",
    ),
    Exchange(
        code="TO",
        name="Toronto Stock Exchange",
        mic="XTSE",
        time_zone="America/Toronto",
        trading_hours="09:30-16:00",
        country_code="CA",
        country_name="Canada",
        url="https://www.tradinghours.com/markets/tsx",
    ),
    Exchange(
        code="T",
        name="Tokyo Stock Exchange",
        mic="XJPX",
        time_zone="Asia/Tokyo",
        trading_hours="09:00-15:30",
        country_code="JP",
        country_name="Japan",
        url="https://www.tradinghours.com/markets/jpx",
    ),
)


def protocol_resource() -> Resource:
    """MCP resource definition advertised by ``resources/list``."""
    return Resource(
        uri=EXCHANGES_RESOURCE_URI,
        name=EXCHANGES_RESOURCE_NAME,
        description="Gets all the exchanges listed on Finnhub.",
        mimeType=EXCHANGES_MIME_TYPE,
        annotations=Annotations(audience=["assistant", "user"]),
    )


def get_exchanges() -> Result[ExchangesResponse]:
    return Result.success(ExchangesResponse(exchanges=EXCHANGES))


def read_exchanges() -> str:
    """Render the exchange catalogue as the resource's JSON body."""
    return json.dumps(get_exchanges().to_dict(), indent=2)
