"""Delivery record model."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import Field

from nudge.agent.models.base import StorageModel, utc_now
from nudge.agent.models.enums import AgentType, Channel, DeliveryStatus


class DeliveryRecord(StorageModel):
    """One dispatched message and its delivery lifecycle.

    Title and body are the rendered snapshot; they are never re-rendered.
    Only the delivery tracker changes `status` and the timestamps, and each
    change bumps `version` for compare-and-set persistence.
    """

    id: UUID = Field(default_factory=uuid4, description="Record identifier")
    recipient_id: str = Field(..., description="Recipient user")
    channel: Channel = Field(..., description="Delivery channel")
    status: DeliveryStatus = Field(default=DeliveryStatus.PENDING)

    rule_id: str = Field(..., description="Rule that fired")
    template_id: str = Field(..., description="Template that was rendered")
    agent_type: AgentType = Field(..., description="Rule's behavioural category")
    trigger_event: str = Field(..., description="Event key that fired the rule")

    title: str = Field(..., description="Rendered title")
    body: str = Field(..., description="Rendered body")
    action_url: str | None = Field(default=None, description="Rendered deep link")
    locale: str = Field(..., description="Locale used for rendering")

    provider_message_id: str | None = Field(
        default=None,
        description="Transport's id for the message, used by callbacks",
    )
    error: str | None = Field(default=None, description="Set only when FAILED/BOUNCED")

    created_at: datetime = Field(default_factory=utc_now)
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    failed_at: datetime | None = None
    bounced_at: datetime | None = None

    version: int = Field(default=0, ge=0, description="Optimistic concurrency counter")
