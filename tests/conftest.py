"""Shared fixtures for importer tests."""

from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
import structlog

from game_catalog.catalog import CatalogStore
from game_catalog.config import DatabaseConfig, IGDBConfig, RetryConfig
from game_catalog.ingestion.client import IGDBClient, TokenManager
from game_catalog.ingestion.utils import ClientState

BASE_URL = "https://api.igdb.com/v4"
TOKEN_URL = "https://id.twitch.tv/oauth2/token"


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Drop any logging configuration a test installed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def igdb_config(tmp_path: Path) -> IGDBConfig:
    """IGDB configuration with test credentials and a private token cache."""
    return IGDBConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        base_url=BASE_URL,
        token_url=TOKEN_URL,
        token_cache_path=tmp_path / "cache" / "token_cache.json",
        requests_per_second=50,
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    """Retry policy without backoff delays."""
    return RetryConfig(max_attempts=2, base_delay_seconds=0)


@pytest_asyncio.fixture
async def igdb_client(
    igdb_config: IGDBConfig,
    retry_config: RetryConfig,
) -> AsyncIterator[IGDBClient]:
    """IGDB client wired to a token manager sharing its state."""
    state = ClientState()
    token_manager = TokenManager(config=igdb_config, retry_config=retry_config, state=state)
    client = IGDBClient(config=igdb_config, token_manager=token_manager, state=state)
    yield client
    await client.close()


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncIterator[CatalogStore]:
    """Catalog store on a fresh SQLite database."""
    catalog = CatalogStore(
        config=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    )
    await catalog.create_schema()
    yield catalog
    await catalog.dispose()


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for IGDB game payloads shaped like the importer's query."""

    def _make(igdb_id: int = 1942, name: str = "The Witcher 3: Wild Hunt", **overrides: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": igdb_id,
            "name": name,
            "summary": "Geralt of Rivia hunts monsters.",
            "cover": {"id": 89386, "image_id": "co1wyy"},
            "screenshots": [
                {"id": 1, "image_id": "sc6lf9"},
                {"id": 2, "image_id": "sc6lfa"},
            ],
            "genres": [
                {"id": 12, "name": "Role-playing (RPG)"},
                {"id": 31, "name": "Adventure"},
            ],
            "first_release_date": 1431993600,
            "total_rating": 93.4,
            "category": 0,
            "involved_companies": [
                {
                    "id": 1,
                    "company": {"id": 908, "name": "CD Projekt RED"},
                    "developer": True,
                    "publisher": False,
                },
                {
                    "id": 2,
                    "company": {"id": 1633, "name": "CD Projekt"},
                    "developer": False,
                    "publisher": True,
                },
            ],
        }
        record.update(overrides)
        return record

    return _make
