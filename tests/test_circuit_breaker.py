"""
Tests for the circuit breaker
"""

import asyncio

import pytest

from finnhub_mcp.domain.exceptions import CircuitBreakerOpenException
from finnhub_mcp.infrastructure.circuit_breaker import CircuitBreaker, CircuitState


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def _succeed():
    return "ok"


async def _fail():
    raise ConnectionError("down")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, recovery_timeout=30, name="test", clock=clock)


async def _trip(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(ConnectionError):
            await breaker.call(_fail)


class TestCircuitBreaker:
    """Test circuit breaker state transitions"""

    @pytest.mark.asyncio
    async def test_success_passes_through(self, breaker):
        assert await breaker.call(_succeed) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, breaker):
        await _trip(breaker, 2)
        assert breaker.state == CircuitState.CLOSED

        await _trip(breaker, 1)
        assert breaker.state == CircuitState.OPEN
        assert breaker.failure_count == 3

    @pytest.mark.asyncio
    async def test_open_circuit_short_circuits(self, breaker):
        """Test calls are rejected without invoking the function"""
        await _trip(breaker, 3)
        calls = []

        async def tracked():
            calls.append(1)

        with pytest.raises(CircuitBreakerOpenException) as exc_info:
            await breaker.call(tracked)

        assert calls == []
        assert exc_info.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, breaker):
        await _trip(breaker, 2)
        await breaker.call(_succeed)

        assert breaker.failure_count == 0
        await _trip(breaker, 2)
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_closes_after_success(self, breaker, clock):
        await _trip(breaker, 3)
        clock.now += 30

        assert await breaker.call(_succeed) == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.opened_at is None

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self, breaker, clock):
        await _trip(breaker, 3)
        clock.now += 31

        await _trip(breaker, 1)

        assert breaker.state == CircuitState.OPEN
        assert breaker.opened_at == clock.now

    @pytest.mark.asyncio
    async def test_half_open_admits_one_trial_at_a_time(self, breaker, clock):
        """Test concurrent callers are rejected while the trial is in flight"""
        await _trip(breaker, 3)
        clock.now += 30
        gate = asyncio.Event()

        async def slow_success():
            await gate.wait()
            return "ok"

        trial = asyncio.create_task(breaker.call(slow_success))
        await asyncio.sleep(0)
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.trial_calls == 1

        for _ in range(4):
            with pytest.raises(CircuitBreakerOpenException):
                await breaker.call(_succeed)

        gate.set()
        assert await trial == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.trial_calls == 0
        assert await breaker.call(_succeed) == "ok"

    @pytest.mark.asyncio
    async def test_trial_slot_released_after_unhandled_exception(self, clock):
        breaker = CircuitBreaker(
            failure_threshold=1,
            recovery_timeout=30,
            is_handled_exception=lambda error: isinstance(error, ConnectionError),
            clock=clock,
        )
        await _trip(breaker, 1)
        clock.now += 30

        async def bad_input():
            raise KeyError("x")

        with pytest.raises(KeyError):
            await breaker.call(bad_input)

        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.trial_calls == 0
        assert await breaker.call(_succeed) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_unhandled_exceptions_are_not_counted(self, clock):
        breaker = CircuitBreaker(
            failure_threshold=1,
            is_handled_exception=lambda error: isinstance(error, ConnectionError),
            clock=clock,
        )

        async def bad_input():
            raise KeyError("x")

        with pytest.raises(KeyError):
            await breaker.call(bad_input)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_failure_result_is_counted_and_returned(self, clock):
        breaker = CircuitBreaker(
            failure_threshold=2,
            is_failure_result=lambda result: result == "bad",
            clock=clock,
        )

        async def bad_result():
            return "bad"

        assert await breaker.call(bad_result) == "bad"
        assert breaker.failure_count == 1
        assert await breaker.call(bad_result) == "bad"
        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_reset(self, breaker):
        await _trip(breaker, 3)
        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert await breaker.call(_succeed) == "ok"

    @pytest.mark.asyncio
    async def test_get_status(self, breaker, clock):
        assert breaker.get_status()["retry_after_seconds"] is None

        await _trip(breaker, 3)
        clock.now += 10
        status = breaker.get_status()

        assert status == {
            "name": "test",
            "state": "open",
            "failure_count": 3,
            "failure_threshold": 3,
            "retry_after_seconds": 20,
        }
