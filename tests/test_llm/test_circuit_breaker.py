"""Tests for the provider circuit breaker."""

import pytest

from src.llm.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from tests.test_llm.conftest import FakeClock


async def _success() -> str:
    return "ok"


async def _failure() -> str:
    raise RuntimeError("boom")


class TestClosedState:
    """Circuit in CLOSED state passes calls through."""

    async def test_passthrough_success(self) -> None:
        breaker = CircuitBreaker(failure_threshold=3)
        assert await breaker.call(_success) == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 0

    async def test_single_failure_stays_closed(self) -> None:
        breaker = CircuitBreaker(failure_threshold=3)
        with pytest.raises(RuntimeError, match="boom"):
            await breaker.call(_failure)
        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 1

    async def test_success_resets_failure_count(self) -> None:
        breaker = CircuitBreaker(failure_threshold=3)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_failure)

        await breaker.call(_success)

        assert breaker.consecutive_failures == 0
        assert breaker.state == CircuitState.CLOSED


class TestOpenState:
    """Circuit opens after threshold failures and rejects calls."""

    async def test_rejects_when_open(self) -> None:
        breaker = CircuitBreaker(failure_threshold=2, name="openai")
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_failure)
        assert breaker.state == CircuitState.OPEN

        with pytest.raises(CircuitOpenError, match="openai is OPEN"):
            await breaker.call(_success)

    async def test_reset_closes(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1)
        with pytest.raises(RuntimeError):
            await breaker.call(_failure)

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert await breaker.call(_success) == "ok"


class TestHalfOpenRecovery:
    """Circuit transitions to HALF_OPEN after recovery timeout."""

    async def test_recovery_probe_success(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=30.0, clock=clock)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_failure)

        clock.advance(29.0)
        with pytest.raises(CircuitOpenError):
            await breaker.call(_success)

        clock.advance(1.0)
        assert await breaker.call(_success) == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 0

    async def test_recovery_probe_failure_reopens(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=30.0, clock=clock)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_failure)

        clock.advance(31.0)
        with pytest.raises(RuntimeError, match="boom"):
            await breaker.call(_failure)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.call(_success)


class TestCallWithArgs:
    async def test_args_passthrough(self) -> None:
        async def _add(a: int, b: int = 0) -> int:
            return a + b

        breaker = CircuitBreaker()
        assert await breaker.call(_add, 2, b=3) == 5
