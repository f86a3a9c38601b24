"""
Input validation for tool arguments.

Tool arguments arrive as an untyped, string-keyed mapping decoded from the
MCP transport. The functions in this module turn that mapping into
sanitized, bounds-checked primitives. This is the single gate against
injection-style input; no other layer re-sanitizes.
"""

import re
from typing import Any, Mapping, Optional

from .domain.entities import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_QUERY_LENGTH,
    MIN_LIMIT,
    MIN_QUERY_LENGTH,
)
from .domain.exceptions import (
    InvalidCharactersError,
    InvalidLengthError,
    MissingParameterError,
    OutOfRangeError,
)

# Validation patterns
QUERY_PATTERN = re.compile(r"^[A-Za-z0-9 \-_.]{1,500}$")
EXCHANGE_PATTERN = re.compile(r"^[A-Z0-9\-_]{1,50}$")

MAX_EXCHANGE_LENGTH = 50

QUERY_ALLOWED = "letters, numbers, spaces, dashes (-), underscores (_) and periods (.)"
EXCHANGE_ALLOWED = "A-Z, 0-9, dashes (-) and underscores (_)"


def _get_string(args: Optional[Mapping[str, Any]], param_name: str) -> Optional[str]:
    """
    Read a parameter as a string.

    Non-string values are rendered with ``str``; ``None`` and absent keys
    both yield ``None``.
    """
    if not args or param_name not in args:
        return None

    value = args[param_name]
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _parse_int(value: Any) -> Optional[int]:
    """Parse an integer, returning None for anything unparsable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_and_get_query(
    args: Optional[Mapping[str, Any]],
    param_name: str = "query",
    min_length: int = MIN_QUERY_LENGTH,
    max_length: int = MAX_QUERY_LENGTH,
) -> str:
    """
    Extract and sanitize the required free-text query.

    Args:
        args: Tool arguments
        param_name: Name of the query parameter
        min_length: Minimum length after trimming
        max_length: Maximum length after trimming

    Returns:
        The trimmed query

    Raises:
        MissingParameterError: If the parameter is absent, empty or whitespace
        InvalidLengthError: If the trimmed query is too short or too long
        InvalidCharactersError: If the query contains characters outside the allowlist
    """
    raw = _get_string(args, param_name)
    if raw is None or not raw.strip():
        raise MissingParameterError(param_name)

    query = raw.strip()

    if len(query) < min_length or len(query) > max_length:
        raise InvalidLengthError(param_name, query, min_length, max_length)

    if not QUERY_PATTERN.match(query):
        raise InvalidCharactersError(param_name, query, QUERY_ALLOWED)

    return query


def validate_and_get_exchange(
    args: Optional[Mapping[str, Any]],
    param_name: str = "exchange",
) -> Optional[str]:
    """
    Extract and normalize the optional exchange code.

    Returns:
        The trimmed, uppercased exchange, or None when absent or blank

    Raises:
        InvalidLengthError: If the exchange is longer than 50 characters
        InvalidCharactersError: If the exchange contains characters outside the allowlist
    """
    raw = _get_string(args, param_name)
    if raw is None or not raw.strip():
        return None

    exchange = raw.strip().upper()

    if len(exchange) > MAX_EXCHANGE_LENGTH:
        raise InvalidLengthError(param_name, exchange, 1, MAX_EXCHANGE_LENGTH)

    if not EXCHANGE_PATTERN.match(exchange):
        raise InvalidCharactersError(param_name, exchange, EXCHANGE_ALLOWED)

    return exchange


def validate_and_get_limit(
    args: Optional[Mapping[str, Any]],
    param_name: str = "limit",
    default: int = DEFAULT_LIMIT,
    min_value: int = MIN_LIMIT,
    max_value: int = MAX_LIMIT,
) -> int:
    """
    Extract the optional result limit.

    Missing or unparsable values fall back to ``default``; this never fails
    for garbled input.

    Raises:
        OutOfRangeError: If a parsed value is outside [min_value, max_value]
    """
    if not args or param_name not in args:
        return default

    limit = _parse_int(args[param_name])
    if limit is None:
        return default

    if limit < min_value or limit > max_value:
        raise OutOfRangeError(param_name, limit, min_value, max_value)

    return limit
