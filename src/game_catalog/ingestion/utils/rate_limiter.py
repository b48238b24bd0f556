"""
Rate limiter for API requests.

Enforces a minimum spacing between outbound requests so we stay
within IGDB's limit of 4 requests per second.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from game_catalog.ingestion.utils.state import ClientState
from game_catalog.logger import get_logger


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter."""

    requests_per_second: float = 4.0

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError(
                f"requests_per_second must be positive, got {self.requests_per_second}"
            )


@dataclass
class RateLimiter:
    """
    Minimum-interval rate limiter.

    Each call to wait_turn() returns no sooner than 1/requests_per_second
    seconds after the previous call returned. The first call never waits.
    The pipeline is a single sequential actor, so there is no lock: the
    only shared value is the last-issued timestamp in ClientState.

    Example:
        >>> limiter = RateLimiter(RateLimiterConfig(requests_per_second=4))
        >>> async with limiter:
        ...     await make_request()
    """

    config: RateLimiterConfig
    state: ClientState = field(default_factory=ClientState)
    clock: Callable[[], float] = time.monotonic
    _logger: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = get_logger(__name__, component="rate_limiter")

    @property
    def min_interval(self) -> float:
        """Seconds that must separate two consecutive turns."""
        return 1.0 / self.config.requests_per_second

    def time_until_next_turn(self) -> float:
        """Seconds the next caller would have to wait (0 if none)."""
        last = self.state.last_request_time
        if last is None:
            return 0.0
        return max(0.0, self.min_interval - (self.clock() - last))

    async def wait_turn(self) -> None:
        """Block until the caller may issue its request."""
        wait_time = self.time_until_next_turn()
        if wait_time > 0:
            self._logger.debug(
                "Rate limit reached, waiting",
                wait_seconds=round(wait_time, 3),
            )
        # The event loop may wake us marginally early
        while wait_time > 0:
            await asyncio.sleep(wait_time)
            wait_time = self.time_until_next_turn()

        self.state.last_request_time = self.clock()

    async def __aenter__(self) -> "RateLimiter":
        """Wait for a turn on context entry."""
        await self.wait_turn()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """No-op on context exit."""
        pass
