"""Retry utilities with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Tuple, Type

LOGGER = logging.getLogger(__name__)


async def retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs: Any,
) -> Any:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Async function to retry
        *args: Positional arguments to pass to func
        max_retries: Retries after the first attempt (default: 2)
        base_delay: Delay before the first retry in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 10.0)
        retry_on: Exception types that trigger a retry; others propagate at once
        **kwargs: Keyword arguments to pass to func

    Returns:
        Result from func

    Raises:
        The last exception once all retries are exhausted
    """
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt >= max_retries:
                LOGGER.error(f"Giving up after {attempt + 1} attempt(s): {e}")
                raise
            delay = min(base_delay * (2 ** attempt), max_delay)
            LOGGER.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed ({type(e).__name__}: {e}), "
                f"retrying in {delay:.1f}s"
            )
            attempt += 1
            await asyncio.sleep(delay)


__all__ = ["retry_with_backoff"]
