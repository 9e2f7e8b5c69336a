"""Timing instrumentation shared by the repositories."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from core.logger import get_logger
from core.wide_event import set_wide_event_fields

logger = get_logger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")


def _operation_label(operation_name: str, args: tuple) -> str:
    """``"authors.exists"`` when called on a repository, else the bare name."""
    model = getattr(args[0], "model", None) if args else None
    table = getattr(model, "__tablename__", None)
    return f"{table}.{operation_name}" if table else operation_name


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Time a repository coroutine and report it on the request's wide event.

    A call slower than SLOW_QUERY_THRESHOLD_MS also gets its own warning
    line. A raised exception is recorded and then propagates untouched.

        @log_slow_query("find_by_id")
        async def find_by_id(self, entity_id: int) -> T | None: ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            operation = _operation_label(operation_name, args)
            started = time.perf_counter()

            def elapsed_ms() -> float:
                return round((time.perf_counter() - started) * 1000, 2)

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation,
                    db_duration_ms=elapsed_ms(),
                    db_error_type=type(e).__name__,
                )
                raise

            duration_ms = elapsed_ms()
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db.query.slow", db_operation=operation, db_duration_ms=duration_ms
                )
                set_wide_event_fields(
                    db_slow_query=True,
                    db_operation=operation,
                    db_duration_ms=duration_ms,
                )
            return result

        return wrapper

    return decorator
