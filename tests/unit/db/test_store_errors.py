"""Tests for the store error hierarchy."""

import nudge.db
from nudge.db import ConflictError, ConnectionError, StoreError


class TestStoreErrors:
    def test_exports_only_raised_errors(self) -> None:
        assert sorted(nudge.db.__all__) == ["ConflictError", "ConnectionError", "StoreError"]
        assert not hasattr(nudge.db, "NotFoundError")

    def test_subclasses_share_base(self) -> None:
        assert issubclass(ConnectionError, StoreError)
        assert issubclass(ConflictError, StoreError)

    def test_keeps_cause(self) -> None:
        cause = OSError("refused")
        error = ConnectionError("redis unreachable", cause=cause)

        assert error.cause is cause
        assert str(error) == "redis unreachable"
