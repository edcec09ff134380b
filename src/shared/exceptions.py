"""Error taxonomy for the protocol sync.

Every failure that may abort a sweep derives from SyncError so the engine can
catch the whole family in one place and report it as a retryable failure.
"""


class SyncError(Exception):
    """Base class for recoverable sync failures."""


class TransportError(SyncError):
    """Upstream unavailable or returned a malformed response."""


class NotFoundError(SyncError):
    """Identifier is unknown upstream (HTTP 404)."""

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"'{identifier}' not found upstream")


class StoreError(SyncError):
    """Persistence layer failure."""
