"""Per-process mutable state shared by the IGDB client components."""

from dataclasses import dataclass


@dataclass
class ClientState:
    """
    Mutable state owned by one IGDB client instance.

    Holds the in-process access token and the monotonic timestamp
    of the last outbound request. Created once per process and handed
    to the token manager and rate limiter explicitly.
    """

    cached_token: str | None = None
    last_request_time: float | None = None
