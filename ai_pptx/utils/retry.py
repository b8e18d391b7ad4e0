"""
Retry Utility with Exponential Backoff

Retries transient Whisk failures (timeouts, transport errors, HTTP 429/5xx)
a bounded number of times before the caller reports failure.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx

from ai_pptx.errors import TransientServiceError
from ai_pptx.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar('T')

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable_error(error: Exception) -> bool:
    """Check whether an exception represents a transient failure."""
    if isinstance(error, TransientServiceError):
        return True
    # TimeoutException is a subclass of TransportError
    return isinstance(error, httpx.TransportError)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    operation_name: str = "Whisk call"
) -> T:
    """
    Call async function with exponential backoff retry for transient errors.

    Args:
        func: Async function to call (should be a lambda or callable)
        max_retries: Retry attempts after the first call (0 disables retries)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        operation_name: Description of operation for logging

    Returns:
        Result from successful function call

    Raises:
        Exception: If all retries exhausted or a non-retryable error occurs
    """
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            result = await func()

            if attempt > 0:
                logger.info(f"{operation_name} succeeded after {attempt} retries")

            return result

        except Exception as e:
            retryable = is_retryable_error(e)

            if retryable and attempt < attempts - 1:
                delay = min(base_delay * (2 ** attempt), max_delay)

                logger.warning(
                    f"{operation_name} failed transiently (attempt {attempt + 1}/{attempts}). "
                    f"Retrying in {delay:.1f}s...",
                    extra={"error": str(e)}
                )

                await asyncio.sleep(delay)
                continue

            if retryable:
                logger.error(f"{operation_name} failed after {attempts} attempts: {e}")
            else:
                logger.error(f"{operation_name} failed with non-retryable error: {e}")

            raise

    # range(attempts) always returns or raises above
    raise RuntimeError(f"{operation_name} failed after {attempts} attempts")
