"""
Timeout Decorator
=================

Adds timeout support to coroutines using asyncio.wait_for.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class CallTimeoutError(Exception):
    """Raised when a coroutine exceeds its timeout."""

    def __init__(self, name: str, timeout_seconds: float):
        self.name = name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"'{name}' execution exceeded {timeout_seconds}s timeout")


async def run_with_timeout(
    awaitable: Awaitable[Any],
    timeout_seconds: Optional[float],
    name: str = "call"
) -> Any:
    """
    Await ``awaitable`` for at most ``timeout_seconds``.

    A timeout of None or <= 0 waits indefinitely. On expiry the awaitable is
    cancelled and CallTimeoutError is raised.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.error(f"⏱️ [Timeout] '{name}' exceeded timeout of {timeout_seconds}s")
        raise CallTimeoutError(name, timeout_seconds) from None


def with_timeout(timeout_seconds: float):
    """
    Decorator to add a timeout to an async function.

    Example:
        >>> @with_timeout(5.0)
        ... async def slow_function():
        ...     await asyncio.sleep(10)
        >>>
        >>> await slow_function()  # Raises CallTimeoutError after 5s

    Args:
        timeout_seconds: Maximum execution time in seconds

    Returns:
        Decorated coroutine function
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            return await run_with_timeout(func(*args, **kwargs), timeout_seconds, func.__name__)
        return wrapper
    return decorator
