"""Tests for configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from game_catalog.config import (
    MAX_PAGE_SIZE,
    DatabaseConfig,
    IGDBConfig,
    ImportConfig,
    LoggingConfig,
    RetryConfig,
    resolve_page_size,
)


class TestIGDBConfig:
    """Tests for IGDB configuration."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            config = IGDBConfig()

        assert config.base_url == "https://api.igdb.com/v4"
        assert config.token_url == "https://id.twitch.tv/oauth2/token"
        assert config.image_base_url == "https://images.igdb.com/igdb/image/upload"
        assert config.default_cover_size == "cover_big"
        assert config.default_screenshot_size == "screenshot_big"
        assert config.token_cache_key == "igdb_access_token"
        assert config.token_cache_ttl_seconds == 86400 * 30
        assert config.token_cache_path == Path("data/cache/token_cache.json")
        assert config.requests_per_second == 4.0
        assert config.timeout_seconds == 30

    def test_missing_credentials_are_not_a_config_error(self) -> None:
        """Missing credentials surface later as CredentialError."""
        with patch.dict(os.environ, {}, clear=True):
            config = IGDBConfig()

        assert config.has_credentials is False

    def test_credentials_from_environment(self) -> None:
        """Test credentials are read and the secret is masked."""
        with patch.dict(
            os.environ,
            {"IGDB_CLIENT_ID": "abc123", "IGDB_CLIENT_SECRET": "secret_456"},
            clear=True,
        ):
            config = IGDBConfig()

        assert config.client_id == "abc123"
        assert config.has_credentials is True
        assert "secret_456" not in repr(config.client_secret)
        assert config.client_secret.get_secret_value() == "secret_456"

    def test_trailing_slash_stripped(self) -> None:
        """Test URLs are normalized."""
        with patch.dict(os.environ, {"IGDB_BASE_URL": "https://example.test/v4/"}, clear=True):
            config = IGDBConfig()

        assert config.base_url == "https://example.test/v4"

    def test_requests_per_second_bounds(self) -> None:
        """Test rate limit validation bounds."""
        with patch.dict(os.environ, {"IGDB_REQUESTS_PER_SECOND": "0"}), pytest.raises(ValueError):
            IGDBConfig()

        with patch.dict(os.environ, {"IGDB_REQUESTS_PER_SECOND": "51"}), pytest.raises(ValueError):
            IGDBConfig()


class TestImportConfig:
    """Tests for import defaults."""

    def test_default_values(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = ImportConfig()

        assert config.count == 100
        assert config.offset == 0
        assert config.min_rating == 60
        assert config.batch_size == 50

    def test_batch_size_capped_at_protocol_maximum(self) -> None:
        with patch.dict(os.environ, {"IMPORT_BATCH_SIZE": "501"}), pytest.raises(ValueError):
            ImportConfig()

    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(50, 50), (500, 500), (1000, MAX_PAGE_SIZE), (0, MAX_PAGE_SIZE), (-3, MAX_PAGE_SIZE)],
    )
    def test_resolve_page_size(self, requested: int, expected: int) -> None:
        assert resolve_page_size(requested) == expected


class TestDatabaseConfig:
    def test_default_url_is_async_sqlite(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = DatabaseConfig()

        assert config.url.startswith("sqlite+aiosqlite://")
        assert config.echo is False


class TestRetryConfig:
    """Tests for retry configuration."""

    def test_default_values(self) -> None:
        """Test default retry values."""
        with patch.dict(os.environ, {}, clear=True):
            config = RetryConfig()

        assert config.max_attempts == 3
        assert config.base_delay_seconds == 1.0
        assert config.max_delay_seconds == 60.0
        assert config.exponential_base == 2.0

    def test_max_attempts_bounds(self) -> None:
        """Test max_attempts validation bounds."""
        with patch.dict(os.environ, {"RETRY_MAX_ATTEMPTS": "0"}), pytest.raises(ValueError):
            RetryConfig()

        with patch.dict(os.environ, {"RETRY_MAX_ATTEMPTS": "11"}), pytest.raises(ValueError):
            RetryConfig()


class TestLoggingConfig:
    """Tests for logging configuration."""

    def test_valid_levels(self) -> None:
        """Test valid log levels."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            with patch.dict(os.environ, {"LOG_LEVEL": level}):
                config = LoggingConfig()
                assert config.level == level

    def test_valid_formats(self) -> None:
        """Test valid log formats."""
        for fmt in ["json", "console"]:
            with patch.dict(os.environ, {"LOG_FORMAT": fmt}):
                config = LoggingConfig()
                assert config.format == fmt
