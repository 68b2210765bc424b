"""
Shared utilities for outbound generation calls.
Provides the retry-with-exponential-backoff wrapper and the error
classification it relies on.
"""
import logging
import time
from typing import Any, Callable, Optional, TypeVar

import requests

from .errors import QuotaExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 2.0


def _status_code(error: BaseException) -> Optional[int]:
    """HTTP status code carried by an error, if any."""
    code = getattr(error, "status_code", None)
    if code is None:
        code = getattr(error, "code", None)
    if code is None:
        response = getattr(error, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def is_quota_error(error: BaseException) -> bool:
    """Rate-limit / quota responses, whatever shape the vendor used."""
    if _status_code(error) == 429:
        return True
    if getattr(error, "status", None) == "RESOURCE_EXHAUSTED":
        return True
    message = str(error)
    return "429" in message or "quota" in message.lower()


def is_server_error(error: BaseException) -> bool:
    """Server-side 5xx responses."""
    code = _status_code(error)
    return code is not None and 500 <= code < 600


def is_abort_error(error: BaseException) -> bool:
    """Transport aborts: timeouts, dropped connections, aborted requests."""
    if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return True
    return "aborted" in str(error).lower()


def is_retryable(error: BaseException) -> bool:
    return is_quota_error(error) or is_server_error(error) or is_abort_error(error)


def with_retry(fn: Callable[[], T], max_attempts: int = DEFAULT_MAX_ATTEMPTS,
               base_delay: float = DEFAULT_BASE_DELAY,
               sleep: Callable[[float], Any] = time.sleep) -> T:
    """
    Call ``fn`` with retry and exponential backoff.

    Only quota/rate-limit, 5xx and transport-abort errors are retried; any
    other error propagates immediately without delay. When retries run out on
    a quota-class failure the error is normalised to QuotaExhaustedError so
    callers can show one consistent message.

    Args:
        fn: Zero-argument callable performing the outbound call
        max_attempts: Total number of attempts (default 3)
        base_delay: Delay in seconds before the first retry; doubles each time
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever ``fn`` returns on the first successful attempt

    Raises:
        QuotaExhaustedError: Quota-class failure on the last attempt
        Exception: The original error for non-retryable or exhausted failures
    """
    delay = base_delay
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not is_retryable(e):
                raise

            if attempt >= max_attempts:
                logger.error(f"All {max_attempts} attempts failed: {e}")
                if is_quota_error(e):
                    raise QuotaExhaustedError() from e
                raise

            logger.warning(
                f"Request failed on attempt {attempt}/{max_attempts} ({e}). "
                f"Retrying in {delay}s..."
            )
            sleep(delay)
            delay *= 2

    # max_attempts < 1
    raise ValueError("max_attempts must be at least 1")
