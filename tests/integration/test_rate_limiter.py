"""Tests for rate limiter."""

import asyncio
import time

import pytest

from game_catalog.ingestion.utils import ClientState, RateLimiter, RateLimiterConfig


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Tests for RateLimiter."""

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self) -> None:
        """Test that the first request is allowed immediately."""
        limiter = RateLimiter(RateLimiterConfig(requests_per_second=1))

        start = time.perf_counter()
        await limiter.wait_turn()
        elapsed = time.perf_counter() - start

        assert elapsed < 0.1

    @pytest.mark.asyncio
    async def test_enforces_minimum_spacing(self) -> None:
        """Five calls at 4 rps span at least four intervals."""
        limiter = RateLimiter(RateLimiterConfig(requests_per_second=4))

        start = time.perf_counter()
        for _ in range(5):
            await limiter.wait_turn()
        elapsed = time.perf_counter() - start

        assert elapsed >= 1.0

    @pytest.mark.asyncio
    async def test_records_issue_time_in_state(self) -> None:
        clock = FakeClock(250.0)
        state = ClientState()
        limiter = RateLimiter(RateLimiterConfig(requests_per_second=4), state=state, clock=clock)

        await limiter.wait_turn()

        assert state.last_request_time == 250.0

    def test_time_until_next_turn(self) -> None:
        clock = FakeClock(10.0)
        limiter = RateLimiter(
            RateLimiterConfig(requests_per_second=4),
            state=ClientState(last_request_time=10.0),
            clock=clock,
        )

        assert limiter.min_interval == pytest.approx(0.25)
        assert limiter.time_until_next_turn() == pytest.approx(0.25)

        clock.now = 10.1
        assert limiter.time_until_next_turn() == pytest.approx(0.15)

        clock.now = 11.0
        assert limiter.time_until_next_turn() == 0.0

    @pytest.mark.asyncio
    async def test_keeps_sleeping_after_early_wakeup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Waits are repeated until the full interval has passed."""
        clock = FakeClock(0.0)
        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            # First wakeup comes 0.1s early
            clock.now += seconds - 0.1 if len(sleeps) == 1 else seconds

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        limiter = RateLimiter(
            RateLimiterConfig(requests_per_second=2),
            state=ClientState(last_request_time=0.0),
            clock=clock,
        )

        await limiter.wait_turn()

        assert sleeps == [pytest.approx(0.5), pytest.approx(0.1)]
        assert limiter.state.last_request_time == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Test rate limiter as context manager."""
        state = ClientState()
        limiter = RateLimiter(RateLimiterConfig(requests_per_second=4), state=state)

        async with limiter:
            assert state.last_request_time is not None

    def test_invalid_config(self) -> None:
        with pytest.raises(ValueError):
            RateLimiterConfig(requests_per_second=0)
