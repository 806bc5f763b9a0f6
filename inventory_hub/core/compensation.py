"""Manual compensation for operations spanning the asset store and the database."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_compensation(
    operation: Callable[[], Awaitable[T]],
    compensate: Callable[[], Awaitable[None]],
    operation_name: str = "operation",
) -> T:
    """Run ``operation``; if it raises, run ``compensate`` and re-raise.

    A failing compensation is logged and does not replace the original error.

    Args:
        operation: Async callable performing the remaining steps
        compensate: Async callable undoing side effects already applied
        operation_name: Name of the operation for logging

    Returns:
        Result of the operation
    """
    try:
        return await operation()
    except Exception as e:
        logger.warning(f"{operation_name} failed, running compensation: {e}")
        try:
            await compensate()
        except Exception as compensation_error:
            logger.error(
                f"Compensation for {operation_name} failed: {compensation_error}",
                exc_info=True,
            )
        raise
