"""
Twitch OAuth token management for IGDB.

IGDB authenticates with a Twitch client-credentials token. Tokens
live for roughly 60 days, so we cache them in-process and in a
persistent cache and only exchange credentials when both are empty.
"""

import asyncio
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from game_catalog.config import IGDBConfig, RetryConfig, get_settings
from game_catalog.ingestion.client.errors import CredentialError
from game_catalog.ingestion.client.token_cache import TokenCache
from game_catalog.ingestion.utils.state import ClientState
from game_catalog.logger import get_logger


class TokenManager:
    """
    Obtains and caches the bearer token used for IGDB queries.

    Lookup order in get_token(): in-process value, persistent cache,
    credential exchange. invalidate() clears both caches without
    fetching a replacement.

    Example:
        >>> manager = TokenManager()
        >>> token = await manager.get_token()
    """

    def __init__(
        self,
        *,
        config: IGDBConfig | None = None,
        retry_config: RetryConfig | None = None,
        cache: TokenCache | None = None,
        state: ClientState | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the token manager.

        Args:
            config: IGDB configuration (uses settings if None)
            retry_config: Transport retry policy for the exchange
            cache: Persistent token cache (file cache at the configured path if None)
            state: Shared client state holding the in-process token
            http_client: HTTP client to reuse; one is created and owned if None
        """
        if config is None or retry_config is None:
            settings = get_settings()
            config = config or settings.igdb
            retry_config = retry_config or settings.retry
        self._config = config
        self._retry_config = retry_config
        self._cache = cache or TokenCache(config.token_cache_path)
        self._state = state or ClientState()
        self._client = http_client
        self._owns_client = http_client is None
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__, component="token_manager")

    @property
    def state(self) -> ClientState:
        """Shared client state."""
        return self._state

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout_seconds))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_token(self) -> str:
        """
        Return a usable access token.

        Returns:
            str: Bearer token

        Raises:
            CredentialError: If credentials are missing or the exchange fails
        """
        if self._state.cached_token:
            return self._state.cached_token

        # Only one refresh may be in flight per process
        async with self._lock:
            if self._state.cached_token:
                return self._state.cached_token

            cached = self._cache.get(self._config.token_cache_key)
            if cached:
                self._logger.debug("Using token from persistent cache")
                self._state.cached_token = cached
                return cached

            token = await self._request_new_token()
            self._cache.put(
                self._config.token_cache_key,
                token,
                self._config.token_cache_ttl_seconds,
            )
            self._state.cached_token = token
            return token

    def invalidate(self) -> None:
        """Drop the cached token from memory and the persistent cache."""
        self._state.cached_token = None
        self._cache.forget(self._config.token_cache_key)
        self._logger.info("Access token invalidated")

    def _create_retry_decorator(self) -> Any:
        """Create retry decorator for transport failures."""
        return retry(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self._retry_config.max_attempts),
            wait=wait_exponential(
                multiplier=self._retry_config.base_delay_seconds,
                max=self._retry_config.max_delay_seconds,
                exp_base=self._retry_config.exponential_base,
            ),
            before_sleep=self._log_retry_attempt,
            reraise=True,
        )

    def _log_retry_attempt(self, retry_state: Any) -> None:
        self._logger.warning(
            "Retrying token request",
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request_new_token(self) -> str:
        """Exchange client credentials for a new access token."""
        if not self._config.has_credentials:
            raise CredentialError(
                "IGDB credentials not configured. Set IGDB_CLIENT_ID and IGDB_CLIENT_SECRET",
                endpoint=self._config.token_url,
            )

        @self._create_retry_decorator()
        async def _post() -> httpx.Response:
            return await self.client.post(
                self._config.token_url,
                data={
                    "client_id": self._config.client_id,
                    "client_secret": self._config.client_secret.get_secret_value(),
                    "grant_type": "client_credentials",
                },
            )

        try:
            response = await _post()
        except httpx.HTTPError as e:
            self._logger.error("Token request transport failure", error=str(e))
            raise CredentialError(
                f"Failed to reach token endpoint: {e}",
                endpoint=self._config.token_url,
                original_error=e,
            ) from e

        if not response.is_success:
            self._logger.error(
                "IGDB token request failed",
                status=response.status_code,
                body=response.text,
            )
            raise CredentialError(
                f"Failed to obtain IGDB access token: {response.text}",
                endpoint=self._config.token_url,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CredentialError(
                "IGDB token response is not valid JSON",
                endpoint=self._config.token_url,
                status_code=response.status_code,
                body=response.text,
                original_error=e,
            ) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            raise CredentialError(
                "IGDB token response missing access_token",
                endpoint=self._config.token_url,
                status_code=response.status_code,
                body=response.text,
            )

        # expires_in is informational; the cache TTL is configured separately
        self._logger.info(
            "IGDB access token obtained successfully",
            expires_in=data.get("expires_in", "unknown"),
        )
        return token
