"""
IGDB API client.

Token management, query building and request execution
for the IGDB v4 API.
"""

from game_catalog.ingestion.client.auth import TokenManager
from game_catalog.ingestion.client.errors import (
    AuthError,
    CatalogImportError,
    CredentialError,
    MappingError,
    PersistenceError,
    ProtocolError,
)
from game_catalog.ingestion.client.igdb import IGDBClient
from game_catalog.ingestion.client.images import ImageUrlBuilder
from game_catalog.ingestion.client.query import QueryBuilder
from game_catalog.ingestion.client.token_cache import TokenCache

__all__ = [
    # Errors
    "AuthError",
    "CatalogImportError",
    "CredentialError",
    "MappingError",
    "PersistenceError",
    "ProtocolError",
    # Client
    "IGDBClient",
    "ImageUrlBuilder",
    "QueryBuilder",
    "TokenCache",
    "TokenManager",
]
