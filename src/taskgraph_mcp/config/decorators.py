"""Logging decorators for tool handlers.

``traced`` wraps a handler so each request is logged with its tool name,
the list it targets and its duration, and failures are logged before they
propagate.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def traced(
    tool_name: Optional[str] = None,
    logger_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log handler calls and their execution time.

    Args:
        tool_name: Name recorded in log records (defaults to function name)
        logger_name: Optional logger name (defaults to function module)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = tool_name or func.__name__
        log = logging.getLogger(logger_name or func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            context = {"tool": name, "list_id": kwargs.get("list_id")}
            log.debug(f"Calling {name}", extra={**context, "kwargs_keys": sorted(kwargs)})
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    f"Error in {name}: {e}",
                    extra={
                        **context,
                        "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise
            log.info(
                f"Timer: {name}",
                extra={
                    **context,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator
