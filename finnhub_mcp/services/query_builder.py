"""
Assembly of search queries from validated tool arguments.
"""

import uuid
from typing import Optional

from ..domain.entities import DEFAULT_LIMIT, SearchQuery
from ..domain.exceptions import MissingQueryError

QUERY_ID_LENGTH = 10


def generate_query_id() -> str:
    """Return a 10-character hex correlation id."""
    return uuid.uuid4().hex[:QUERY_ID_LENGTH]


def build_search_query(
    query: Optional[str],
    exchange: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    query_id: Optional[str] = None,
) -> SearchQuery:
    """
    Build and validate a search query.

    Args:
        query: Sanitized query text
        exchange: Sanitized exchange code, if any
        limit: Result limit
        query_id: Correlation id; generated when omitted

    Returns:
        Validated SearchQuery

    Raises:
        MissingQueryError: If no query text was given
        InputValidationError: If the assembled query breaks an invariant
    """
    if query is None or not query.strip():
        raise MissingQueryError()

    search_query = SearchQuery(
        query_id=query_id or generate_query_id(),
        query=query,
        exchange=exchange or None,
        limit=limit,
    )
    search_query.validate()
    return search_query
