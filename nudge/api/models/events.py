"""Event intake request and response models."""

from uuid import UUID

from pydantic import Field

from nudge.agent.models import Channel, Event, StorageModel


class PlanOutcomeResponse(StorageModel):
    rule_id: str
    channel: Channel
    status: str
    delivery_id: UUID | None = None
    error: str | None = None


class SkippedRuleResponse(StorageModel):
    rule_id: str
    reason: str


class EventResponse(StorageModel):
    """Result of handling one event."""

    trigger_event: str
    recipient_id: str
    declined: str | None = Field(default=None, description="Why the whole event was declined")
    outcomes: list[PlanOutcomeResponse] = Field(default_factory=list)
    skipped: list[SkippedRuleResponse] = Field(default_factory=list)


class BatchEventRequest(StorageModel):
    events: list[Event] = Field(..., min_length=1, max_length=100)


class BatchEventResponse(StorageModel):
    events_processed: int
    messages_sent: int
    results: list[EventResponse]
