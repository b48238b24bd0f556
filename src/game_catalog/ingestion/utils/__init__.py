"""
Utility modules for ingestion.

Provides request pacing and the shared client state.
"""

from game_catalog.ingestion.utils.rate_limiter import RateLimiter, RateLimiterConfig
from game_catalog.ingestion.utils.state import ClientState

__all__ = [
    "ClientState",
    "RateLimiter",
    "RateLimiterConfig",
]
