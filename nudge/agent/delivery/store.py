"""DeliveryStore abstract interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from nudge.agent.models import AgentType, Channel, DeliveryRecord, DeliveryStatus


class DeliveryQuery(BaseModel):
    """Filter for delivery record listings and aggregates."""

    recipient_id: str | None = None
    channel: Channel | None = None
    status: DeliveryStatus | None = None
    agent_type: AgentType | None = None
    rule_id: str | None = None
    created_from: datetime | None = Field(default=None, description="Inclusive")
    created_to: datetime | None = Field(default=None, description="Exclusive")

    @field_validator("created_from", "created_to")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat bounds without a timezone as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    def matches(self, record: DeliveryRecord) -> bool:
        if self.recipient_id is not None and record.recipient_id != self.recipient_id:
            return False
        if self.channel is not None and record.channel != self.channel:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.agent_type is not None and record.agent_type != self.agent_type:
            return False
        if self.rule_id is not None and record.rule_id != self.rule_id:
            return False
        if self.created_from is not None and record.created_at < self.created_from:
            return False
        if self.created_to is not None and record.created_at >= self.created_to:
            return False
        return True


@dataclass(frozen=True)
class StatusCount:
    """Number of records in one status for a (day, channel, agent type)."""

    day: date
    channel: Channel
    agent_type: AgentType
    status: DeliveryStatus
    count: int


class DeliveryStore(ABC):
    """Persistence for delivery records.

    Status updates go through `compare_and_set` so concurrent callbacks
    for one record never overwrite each other.
    """

    @abstractmethod
    async def create(self, record: DeliveryRecord) -> None:
        """Insert a new record.

        Raises:
            ConflictError: If a record with the same id exists
        """
        pass

    @abstractmethod
    async def get(self, record_id: UUID) -> DeliveryRecord | None:
        """Get a record by id."""
        pass

    @abstractmethod
    async def get_by_provider_id(
        self,
        channel: Channel,
        provider_message_id: str,
    ) -> DeliveryRecord | None:
        """Get a record by the transport's message id."""
        pass

    @abstractmethod
    async def compare_and_set(self, record: DeliveryRecord, expected_version: int) -> bool:
        """Replace the stored record if its version is still `expected_version`."""
        pass

    @abstractmethod
    async def query(
        self,
        query: DeliveryQuery,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DeliveryRecord]:
        """List matching records, newest first."""
        pass

    @abstractmethod
    async def count(self, query: DeliveryQuery) -> int:
        """Count matching records."""
        pass

    @abstractmethod
    async def count_by_status(self, query: DeliveryQuery) -> list[StatusCount]:
        """Group matching records by UTC creation day, channel, agent type and status."""
        pass
