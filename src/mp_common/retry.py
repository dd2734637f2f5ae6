"""Bounded retry with exponential backoff for outbound async calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class RetryableError(Exception):
    """Raised by a wrapped call to signal a transient failure worth retrying."""


def retry_async(
    max_retries: int = 3,
    base_delay: float = 0.5,
    retry_on: tuple[type[BaseException], ...] = (RetryableError,),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry an async callable on the given exceptions.

    Delay doubles per attempt: base_delay, 2*base_delay, 4*base_delay, ...
    The last exception is re-raised once max_retries is exhausted.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_retries:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__qualname__, attempt + 1, e,
                        )
                        raise
                    delay = base_delay * (2**attempt)
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.2fs",
                        func.__qualname__, attempt + 1, max_retries + 1, e, delay,
                    )
                    await asyncio.sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
