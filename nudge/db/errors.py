"""Store error hierarchy for backing-store implementations.

Backend-specific errors (redis, HTTP, database drivers) are wrapped in one
of these so the engine can tell an outage apart from a lost write.
"""


class StoreError(Exception):
    """Base exception for all store errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the backing store is unreachable."""

    pass


class ConflictError(StoreError):
    """Raised on a unique-key violation or a lost compare-and-set."""

    pass
