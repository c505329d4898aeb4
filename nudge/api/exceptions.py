"""API exception hierarchy for consistent error handling.

All API exceptions inherit from NudgeAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from nudge.api.models.errors import ErrorCode


class NudgeAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(NudgeAPIError):
    """Raised when a request is well-formed but cannot be applied."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class DeliveryNotFoundError(NudgeAPIError):
    """Raised when a delivery record doesn't exist."""

    status_code = 404
    error_code = ErrorCode.DELIVERY_NOT_FOUND


class TransitionConflictError(NudgeAPIError):
    """Raised when a status update keeps losing compare-and-set."""

    status_code = 409
    error_code = ErrorCode.TRANSITION_CONFLICT


class CatalogUnavailableAPIError(NudgeAPIError):
    """Raised when the catalog has never loaded or cannot be refreshed."""

    status_code = 503
    error_code = ErrorCode.CATALOG_UNAVAILABLE


class StoreUnavailableError(NudgeAPIError):
    """Raised when a backing store cannot be reached."""

    status_code = 503
    error_code = ErrorCode.STORE_UNAVAILABLE
