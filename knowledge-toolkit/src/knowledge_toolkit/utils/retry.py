"""
Bounded retry for idempotent remote calls.

Vector store operations (upsert by id, query, delete, list) are safe to repeat,
so a transient failure is retried immediately, without backoff, up to
'attempts' times. The last error is re-raised once the budget is spent.
Generation calls are never wrapped: they are neither idempotent nor cheap.
"""

from typing import Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "operation",
) -> T:
    """Await 'func()' until it succeeds or 'attempts' calls have failed with 'retry_on'."""
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except retry_on as exc:
            logger.warning(f"{label} failed (attempt {attempt}/{attempts}): {type(exc).__name__}: {exc}")
            if attempt == attempts:
                raise
    raise AssertionError("unreachable")
