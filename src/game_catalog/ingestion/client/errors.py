"""
Error taxonomy for the import pipeline.

Each error carries enough context (endpoint, status, body, external id)
to be logged without the caller having to re-derive it.
"""

from datetime import datetime, timezone


class CatalogImportError(Exception):
    """Base exception for import pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
        external_id: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        self.external_id = external_id
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class CredentialError(CatalogImportError):
    """Raised when client credentials are missing or the token exchange fails."""

    pass


class AuthError(CatalogImportError):
    """Raised when IGDB rejects the bearer token twice for the same query."""

    pass


class ProtocolError(CatalogImportError):
    """Raised on non-auth HTTP failures, transport failures, or undecodable bodies."""

    pass


class MappingError(CatalogImportError):
    """Raised when an external record cannot be turned into a catalog entry."""

    pass


class PersistenceError(CatalogImportError):
    """Raised when the atomic write of one catalog entry fails."""

    pass
