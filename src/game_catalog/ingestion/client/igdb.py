"""
IGDB API client.

Composes the rate limiter, token manager and query builder on top of
httpx to execute Apicalypse queries and return decoded records.
"""

import time
from typing import Any

import httpx

from game_catalog.config import MAX_PAGE_SIZE, IGDBConfig, get_settings
from game_catalog.ingestion.client.auth import TokenManager
from game_catalog.ingestion.client.errors import AuthError, ProtocolError
from game_catalog.ingestion.client.query import QueryBuilder
from game_catalog.ingestion.contracts import GAME_FIELDS
from game_catalog.ingestion.utils.rate_limiter import RateLimiter, RateLimiterConfig
from game_catalog.ingestion.utils.state import ClientState
from game_catalog.logger import get_logger


class IGDBClient:
    """
    Client for the IGDB v4 API.

    A 401 response invalidates the cached token and the query is sent
    once more with a fresh token; a second 401 raises AuthError. Any
    other failure raises ProtocolError and is not retried here.

    Example:
        >>> async with IGDBClient() as client:
        ...     games = await client.fetch_candidates(limit=50, min_rating=70)
    """

    def __init__(
        self,
        *,
        config: IGDBConfig | None = None,
        token_manager: TokenManager | None = None,
        rate_limiter: RateLimiter | None = None,
        state: ClientState | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the IGDB client.

        Args:
            config: IGDB configuration (uses settings if None)
            token_manager: Token manager (created from config if None)
            rate_limiter: Rate limiter (created from config if None)
            state: Client state shared by token manager and rate limiter
            http_client: HTTP client to reuse; one is created and owned if None
        """
        self._config = config or get_settings().igdb
        self._state = state or ClientState()
        self._client = http_client
        self._owns_client = http_client is None
        self._token_manager = token_manager or TokenManager(
            config=self._config,
            state=self._state,
            http_client=http_client,
        )
        self._rate_limiter = rate_limiter or RateLimiter(
            RateLimiterConfig(requests_per_second=self._config.requests_per_second),
            state=self._state,
        )
        self._logger = get_logger(__name__, component="igdb_client")

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers={
                    "User-Agent": "GameCatalogImporter/1.0",
                    "Accept": "application/json",
                },
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP clients and release resources."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        await self._token_manager.close()

    async def __aenter__(self) -> "IGDBClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _build_url(self, endpoint: str) -> str:
        return f"{self._config.base_url}/{endpoint.lstrip('/')}"

    async def authenticate(self) -> str:
        """
        Obtain an access token before any query is issued.

        Raises:
            CredentialError: If credentials are missing or rejected
        """
        return await self._token_manager.get_token()

    async def _send(self, url: str, body: str, endpoint: str) -> httpx.Response:
        token = await self._token_manager.get_token()
        try:
            return await self.client.post(
                url,
                content=body.encode("utf-8"),
                headers={
                    "Client-ID": self._config.client_id,
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                    "Content-Type": "text/plain",
                },
            )
        except httpx.HTTPError as e:
            self._logger.error(
                "IGDB API request exception",
                endpoint=endpoint,
                error=str(e),
                query=body,
            )
            raise ProtocolError(
                f"IGDB API request failed: {e}",
                endpoint=endpoint,
                original_error=e,
            ) from e

    async def execute(self, endpoint: str, query: QueryBuilder | str) -> list[dict[str, Any]]:
        """
        Execute one Apicalypse query.

        Args:
            endpoint: API endpoint (e.g. 'games', 'genres')
            query: Query builder or raw query text

        Returns:
            list[dict[str, Any]]: Decoded records (empty when exhausted)

        Raises:
            AuthError: If the token is rejected twice
            ProtocolError: On any other HTTP or transport failure
            CredentialError: If a fresh token cannot be obtained
        """
        await self._rate_limiter.wait_turn()

        body = QueryBuilder.normalize(str(query))
        url = self._build_url(endpoint)
        start_time = time.perf_counter()

        self._logger.debug("IGDB API request", endpoint=endpoint, url=url, body=body)

        response = await self._send(url, body, endpoint)

        if response.status_code == 401:
            self._logger.warning("IGDB token rejected, refreshing", endpoint=endpoint)
            self._token_manager.invalidate()
            await self._rate_limiter.wait_turn()
            response = await self._send(url, body, endpoint)
            if response.status_code == 401:
                self._logger.error("IGDB token rejected after refresh", endpoint=endpoint)
                raise AuthError(
                    "IGDB rejected a freshly issued access token",
                    endpoint=endpoint,
                    status_code=401,
                    body=response.text,
                )

        if not response.is_success:
            self._logger.error(
                "IGDB API request failed",
                endpoint=endpoint,
                status=response.status_code,
                body=response.text,
                query=body,
            )
            raise ProtocolError(
                f"IGDB API request failed: {response.status_code} {response.text}",
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ProtocolError(
                "IGDB API returned a non-JSON body",
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text,
                original_error=e,
            ) from e

        if not isinstance(result, list):
            raise ProtocolError(
                "IGDB API returned a non-array body",
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text,
            )

        self._logger.debug(
            "IGDB API result",
            endpoint=endpoint,
            count=len(result),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    def games_query(self) -> QueryBuilder:
        """Query preselecting the fields the importer maps."""
        return QueryBuilder().fields(*GAME_FIELDS)

    async def fetch_candidates(
        self,
        limit: int = 50,
        offset: int = 0,
        min_rating: float = 0,
    ) -> list[dict[str, Any]]:
        """
        Fetch a page of games with a cover, best rated first.

        Args:
            limit: Page size (capped at 500)
            offset: Pagination offset
            min_rating: Minimum total_rating; 0 disables the filter
        """
        query = self.games_query().where_not_null("cover")
        if min_rating > 0:
            query.where("total_rating", ">=", min_rating)
        query.sort("total_rating", "desc").limit(min(limit, MAX_PAGE_SIZE)).offset(offset)
        return await self.execute("games", query)

    async def fetch_popular_games(self, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        """Fetch rated games with a cover, best rated first."""
        query = (
            self.games_query()
            .where_not_null("cover")
            .where_not_null("total_rating")
            .sort("total_rating", "desc")
            .limit(min(limit, MAX_PAGE_SIZE))
            .offset(offset)
        )
        return await self.execute("games", query)

    async def fetch_game_by_id(self, igdb_id: int) -> dict[str, Any] | None:
        """Fetch a single game, or None if IGDB does not know it."""
        results = await self.execute("games", self.games_query().where("id", "=", igdb_id))
        return results[0] if results else None

    async def search_games(self, term: str, limit: int = 20) -> list[dict[str, Any]]:
        """Search games with a cover by name (IGDB search is unsorted)."""
        query = self.games_query().search(term).where_not_null("cover").limit(limit)
        return await self.execute("games", query)

    async def test_connection(self) -> list[dict[str, Any]]:
        """Simplest possible query: five game names."""
        return await self.execute("games", QueryBuilder().fields("name").limit(5))
