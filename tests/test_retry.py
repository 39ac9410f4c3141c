"""Tests for bounded retry."""

from unittest.mock import AsyncMock

import pytest

from knowledge_toolkit.utils.retry import call_with_retry


async def test_returns_first_success() -> None:
    func = AsyncMock(return_value="ok")
    assert await call_with_retry(func) == "ok"
    assert func.await_count == 1


async def test_retries_transient_failures() -> None:
    func = AsyncMock(side_effect=[RuntimeError("blip"), RuntimeError("blip"), "ok"])
    assert await call_with_retry(func, attempts=3) == "ok"
    assert func.await_count == 3


async def test_reraises_after_budget_spent() -> None:
    func = AsyncMock(side_effect=RuntimeError("down"))
    with pytest.raises(RuntimeError, match="down"):
        await call_with_retry(func, attempts=3)
    assert func.await_count == 3


async def test_other_errors_are_not_retried() -> None:
    func = AsyncMock(side_effect=KeyError("bad"))
    with pytest.raises(KeyError):
        await call_with_retry(func, attempts=3, retry_on=(RuntimeError,))
    assert func.await_count == 1


async def test_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        await call_with_retry(AsyncMock(), attempts=0)


async def test_failure_log_names_the_error(log_messages) -> None:
    func = AsyncMock(side_effect=[TimeoutError(), "ok"])
    await call_with_retry(func, label="Chroma query")
    assert "Chroma query failed (attempt 1/3): TimeoutError: " in log_messages
