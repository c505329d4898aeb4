"""Analytics response models. Rates are percentages rounded to 2 places."""

from datetime import date

from nudge.agent.delivery import DeliveryAnalytics, DeliveryCounts
from nudge.agent.models import AgentType, Channel, StorageModel


class StatsResponse(StorageModel):
    total: int
    pending: int
    sent: int
    delivered: int
    opened: int
    clicked: int
    failed: int
    bounced: int
    delivery_rate: float
    open_rate: float
    click_rate: float

    @classmethod
    def from_counts(cls, counts: DeliveryCounts) -> "StatsResponse":
        return cls(
            total=counts.total,
            pending=counts.pending,
            sent=counts.sent,
            delivered=counts.delivered,
            opened=counts.opened,
            clicked=counts.clicked,
            failed=counts.failed,
            bounced=counts.bounced,
            delivery_rate=_percent(counts.delivery_rate),
            open_rate=_percent(counts.open_rate),
            click_rate=_percent(counts.click_rate),
        )


class DailyStatsResponse(StatsResponse):
    day: date
    channel: Channel


class AgentTypeStatsResponse(StatsResponse):
    agent_type: AgentType


class AnalyticsResponse(StorageModel):
    totals: StatsResponse
    daily: list[DailyStatsResponse]
    by_agent_type: list[AgentTypeStatsResponse]

    @classmethod
    def from_analytics(cls, analytics: DeliveryAnalytics) -> "AnalyticsResponse":
        return cls(
            totals=StatsResponse.from_counts(analytics.totals),
            daily=[
                DailyStatsResponse(
                    day=row.day,
                    channel=row.channel,
                    **StatsResponse.from_counts(row.counts).model_dump(),
                )
                for row in analytics.daily
            ],
            by_agent_type=[
                AgentTypeStatsResponse(
                    agent_type=row.agent_type,
                    **StatsResponse.from_counts(row.counts).model_dump(),
                )
                for row in analytics.by_agent_type
            ],
        )


def _percent(ratio: float) -> float:
    return round(ratio * 100, 2)
