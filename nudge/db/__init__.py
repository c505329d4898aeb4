"""Backing-store support shared by the engine's stores."""

from nudge.db.errors import ConflictError, ConnectionError, StoreError

__all__ = ["ConflictError", "ConnectionError", "StoreError"]
