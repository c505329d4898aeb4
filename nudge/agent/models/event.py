"""Trigger event model."""

from datetime import datetime
from typing import Any

from pydantic import Field

from nudge.agent.models.base import StorageModel, utc_now


class Event(StorageModel):
    """An application occurrence that may fire rules.

    Events are ephemeral; the engine never persists them. `context` feeds
    both condition matching and template substitution.
    """

    trigger_event: str = Field(..., min_length=1, description="Event key, e.g. user_inactive")
    recipient_id: str = Field(..., min_length=1, description="User the event concerns")
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Nested fields such as user.firstName or daysSinceActive",
    )
    locale: str | None = Field(default=None, description="Preferred message locale")
    occurred_at: datetime = Field(default_factory=utc_now, description="When it happened")
