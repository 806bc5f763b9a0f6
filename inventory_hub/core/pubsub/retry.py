"""Retry logic for broker connection attempts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


def calculate_backoff(attempt: int, interval: float | None = None) -> float:
    """Calculate the delay before the next attempt.

    Args:
        attempt: Current attempt number (0-indexed)
        interval: Fixed delay; when omitted the delay grows exponentially

    Returns:
        Delay in seconds (fixed, or 1s, 2s, 4s, 8s, 16s)
    """
    if interval is not None:
        return interval
    return min(2**attempt, 16.0)


def should_retry(attempt: int, max_attempts: int | None = 5) -> bool:
    """Check if we should retry based on attempt number.

    Args:
        attempt: Current attempt number (0-indexed)
        max_attempts: Maximum number of attempts, None for unbounded

    Returns:
        True if should retry, False otherwise
    """
    if max_attempts is None:
        return True
    return attempt < max_attempts - 1


class RetryHandler:
    """Handler for retrying operations with a fixed or exponential backoff."""

    def __init__(self, max_attempts: int | None = 5, interval: float | None = None):
        """Initialize retry handler.

        Args:
            max_attempts: Maximum number of attempts, None to retry until success
            interval: Fixed delay between attempts (exponential when None)
        """
        self.max_attempts = max_attempts
        self.interval = interval

    async def retry_with_backoff(
        self,
        callback: Callable[[], Awaitable[Any]],
        operation_name: str = "operation",
    ) -> Any:
        """Retry an async operation until it succeeds or attempts run out.

        Args:
            callback: Async function to retry
            operation_name: Name of the operation for logging

        Returns:
            Result of the callback

        Raises:
            Exception: Last exception if all retries fail
        """
        attempt = 0
        while True:
            try:
                return await callback()
            except Exception as e:
                if not should_retry(attempt, self.max_attempts):
                    logger.error(
                        f"{operation_name} failed after {attempt + 1} attempts: {e}",
                        exc_info=True,
                    )
                    raise

                delay = calculate_backoff(attempt, self.interval)
                logger.warning(
                    f"{operation_name} failed (attempt {attempt + 1}): {e}. Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
                attempt += 1
