"""
File-backed key/value cache with per-entry expiry.

Holds the IGDB access token across process runs so a fresh
credential exchange is not needed on every import.
"""

import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from game_catalog.logger import get_logger


class TokenCache:
    """
    Persistent cache stored as a single JSON document.

    Layout: ``{key: {"value": str, "expires_at": float}}`` where
    ``expires_at`` is a wall-clock epoch timestamp.

    Example:
        >>> cache = TokenCache(Path("data/cache/token_cache.json"))
        >>> cache.put("igdb_access_token", "abc", ttl_seconds=3600)
        >>> cache.get("igdb_access_token")
        'abc'
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = path
        self._clock = clock
        self._logger = get_logger(__name__, component="token_cache")

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self._logger.warning(
                "Token cache unreadable, treating as empty",
                path=str(self._path),
                error=str(e),
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f)
        tmp_path.replace(self._path)

    def get(self, key: str) -> str | None:
        """Return the cached value, or None if absent or expired."""
        data = self._read()
        entry = data.get(key)
        if not isinstance(entry, dict):
            return None

        value = entry.get("value")
        expires_at = entry.get("expires_at", 0)
        if not isinstance(value, str) or not value:
            return None
        if not isinstance(expires_at, (int, float)) or expires_at <= self._clock():
            self._logger.debug("Cached value expired", key=key)
            self.forget(key)
            return None
        return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""
        data = self._read()
        data[key] = {"value": value, "expires_at": self._clock() + ttl_seconds}
        self._write(data)

    def forget(self, key: str) -> None:
        """Remove a key if present."""
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)
