"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request validation failed (malformed JSON, missing fields, etc.)."""

    DELIVERY_NOT_FOUND = "DELIVERY_NOT_FOUND"
    """The specified delivery record does not exist."""

    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"
    """The rule catalog has not been loaded or could not be refreshed."""

    TRANSITION_CONFLICT = "TRANSITION_CONFLICT"
    """A delivery status update lost to concurrent writers."""

    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    """A backing store could not be reached."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information for validation failures."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "DELIVERY_NOT_FOUND",
                "message": "Delivery 6f1c... not found"
            }
        }
    """

    error: ErrorBody
