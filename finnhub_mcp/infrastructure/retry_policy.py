"""
Retry policy for outbound provider requests.

Retries non-success responses, transport failures and timeouts with
exponential backoff. Cancellation and anything raised before the request
is sent are never retried.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


def is_retryable_exception(error: BaseException) -> bool:
    """Transport failures and timeouts are retryable."""
    return isinstance(error, httpx.TransportError)


def is_retryable_response(response: httpx.Response) -> bool:
    """Any non-2xx response is retryable."""
    return isinstance(response, httpx.Response) and not response.is_success


def _return_last_outcome(retry_state: RetryCallState):
    # Re-raises the last exception, or hands back the last non-success response
    return retry_state.outcome.result()


def build_retry_policy(max_retries: int = 3, backoff_multiplier: float = 2.0) -> AsyncRetrying:
    """
    Build the retry policy.

    Args:
        max_retries: Retries after the first attempt
        backoff_multiplier: Wait before retry n is multiplier * 2^(n - 1)
            seconds, i.e. 2, 4, 8 seconds with the default multiplier

    Returns:
        A tenacity AsyncRetrying template; call ``copy()`` per request
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff_multiplier),
        retry=retry_if_exception(is_retryable_exception) | retry_if_result(is_retryable_response),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=_return_last_outcome,
        reraise=True,
    )
