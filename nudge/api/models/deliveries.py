"""Delivery log and status callback models."""

from datetime import datetime

from pydantic import Field

from nudge.agent.models import DeliveryRecord, DeliveryStatus, StorageModel


class StatusUpdateRequest(StorageModel):
    """A delivery status change reported for a known record."""

    status: DeliveryStatus
    at: datetime | None = Field(default=None, description="When it happened (default: now)")
    error: str | None = Field(default=None, description="Reason for FAILED/BOUNCED")


class ProviderCallbackRequest(StatusUpdateRequest):
    """A delivery status change addressed by the transport's message id."""

    provider_message_id: str = Field(..., min_length=1)


class TransitionResponse(StorageModel):
    outcome: str
    delivery: DeliveryRecord | None = None
