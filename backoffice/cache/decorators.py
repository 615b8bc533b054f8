"""
Decorators that route coroutine calls through a RequestDeduplicator
"""
import functools
import logging
from typing import Any, Awaitable, Callable, Optional

from .dedup import RequestDeduplicator

logger = logging.getLogger(__name__)

def deduplicated(
    deduplicator: RequestDeduplicator,
    key_func: Optional[Callable[..., str]] = None
):
    """
    Collapse concurrent calls of the decorated coroutine function

    Args:
        deduplicator: Deduplicator holding the in-flight calls
        key_func: Builds the deduplication key from the call arguments;
            defaults to the function name plus its arguments
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            if key_func:
                key = key_func(*args, **kwargs)
            else:
                key = f"{func.__name__}:{args!r}:{sorted(kwargs.items())!r}"

            return await deduplicator.deduplicate(key, lambda: func(*args, **kwargs))
        return wrapper
    return decorator
