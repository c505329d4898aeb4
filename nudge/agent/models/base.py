"""Base models for notification engine entities."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class StorageModel(BaseModel):
    """Base for entities exchanged with external storage.

    Storage rows use camelCase keys (`triggerEvent`, `cooldownHours`);
    Python code uses snake_case. Both spellings are accepted on input and
    `model_dump(by_alias=True)` produces the storage shape.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
