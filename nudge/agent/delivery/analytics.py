"""Delivery analytics: a pure projection over grouped status counts.

A record counts toward every stage it has reached, judged by its current
status: a CLICKED record is also sent, delivered and opened. BOUNCED
records were sent but never delivered; FAILED records were never sent.

    deliveryRate = delivered / sent
    openRate     = opened / delivered
    clickRate    = clicked / opened

A zero denominator gives a rate of 0.
"""

from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, Field, computed_field

from nudge.agent.delivery.store import StatusCount
from nudge.agent.models import AgentType, Channel, DeliveryStatus

SENT_STATES = frozenset(
    {
        DeliveryStatus.SENT,
        DeliveryStatus.DELIVERED,
        DeliveryStatus.OPENED,
        DeliveryStatus.CLICKED,
        DeliveryStatus.BOUNCED,
    }
)
DELIVERED_STATES = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.OPENED, DeliveryStatus.CLICKED})
OPENED_STATES = frozenset({DeliveryStatus.OPENED, DeliveryStatus.CLICKED})


def rate(numerator: int, denominator: int) -> float:
    """Ratio in [0, 1]; 0 when the denominator is 0."""
    return numerator / denominator if denominator else 0.0


class DeliveryCounts(BaseModel):
    """Stage counts and derived rates for a group of records."""

    total: int = 0
    pending: int = 0
    sent: int = 0
    delivered: int = 0
    opened: int = 0
    clicked: int = 0
    failed: int = 0
    bounced: int = 0

    def add(self, status: DeliveryStatus, count: int) -> None:
        self.total += count
        if status == DeliveryStatus.PENDING:
            self.pending += count
        if status in SENT_STATES:
            self.sent += count
        if status in DELIVERED_STATES:
            self.delivered += count
        if status in OPENED_STATES:
            self.opened += count
        if status == DeliveryStatus.CLICKED:
            self.clicked += count
        if status == DeliveryStatus.FAILED:
            self.failed += count
        if status == DeliveryStatus.BOUNCED:
            self.bounced += count

    @computed_field
    @property
    def delivery_rate(self) -> float:
        return rate(self.delivered, self.sent)

    @computed_field
    @property
    def open_rate(self) -> float:
        return rate(self.opened, self.delivered)

    @computed_field
    @property
    def click_rate(self) -> float:
        return rate(self.clicked, self.opened)


class DailyChannelStats(BaseModel):
    day: date
    channel: Channel
    counts: DeliveryCounts = Field(default_factory=DeliveryCounts)


class AgentTypeStats(BaseModel):
    agent_type: AgentType
    counts: DeliveryCounts = Field(default_factory=DeliveryCounts)


class DeliveryAnalytics(BaseModel):
    """Totals, per channel per day, and per agent type."""

    totals: DeliveryCounts = Field(default_factory=DeliveryCounts)
    daily: list[DailyChannelStats] = Field(default_factory=list)
    by_agent_type: list[AgentTypeStats] = Field(default_factory=list)


def summarize(counts: Iterable[StatusCount]) -> DeliveryAnalytics:
    """Fold grouped status counts into analytics."""
    totals = DeliveryCounts()
    daily: dict[tuple[date, Channel], DailyChannelStats] = {}
    by_agent: dict[AgentType, AgentTypeStats] = {}

    for row in counts:
        totals.add(row.status, row.count)

        day_key = (row.day, row.channel)
        if day_key not in daily:
            daily[day_key] = DailyChannelStats(day=row.day, channel=row.channel)
        daily[day_key].counts.add(row.status, row.count)

        if row.agent_type not in by_agent:
            by_agent[row.agent_type] = AgentTypeStats(agent_type=row.agent_type)
        by_agent[row.agent_type].counts.add(row.status, row.count)

    return DeliveryAnalytics(
        totals=totals,
        daily=[daily[key] for key in sorted(daily, key=lambda k: (k[0], k[1].value))],
        by_agent_type=[by_agent[key] for key in sorted(by_agent, key=lambda a: a.value)],
    )
