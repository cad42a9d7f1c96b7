"""Timing decorator for storage and Discord calls."""
from __future__ import annotations

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def timed(name: Optional[str] = None) -> Callable[[F], F]:
    """Log the wall-clock duration of a coroutine at debug level."""

    def decorator(func: F) -> F:
        label = name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.debug("%s: %dms", label, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["timed"]
