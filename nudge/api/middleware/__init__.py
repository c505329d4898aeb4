"""API middleware."""

from nudge.api.middleware.context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
