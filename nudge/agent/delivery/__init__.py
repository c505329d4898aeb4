"""Delivery records: persistence, status tracking and analytics."""

from nudge.agent.delivery.analytics import (
    AgentTypeStats,
    DailyChannelStats,
    DeliveryAnalytics,
    DeliveryCounts,
    summarize,
)
from nudge.agent.delivery.inmemory import InMemoryDeliveryStore
from nudge.agent.delivery.store import DeliveryQuery, DeliveryStore, StatusCount
from nudge.agent.delivery.tracker import (
    DeliveryTracker,
    TransitionOutcome,
    TransitionResult,
    classify_transition,
)

__all__ = [
    "AgentTypeStats",
    "DailyChannelStats",
    "DeliveryAnalytics",
    "DeliveryCounts",
    "DeliveryQuery",
    "DeliveryStore",
    "DeliveryTracker",
    "InMemoryDeliveryStore",
    "StatusCount",
    "TransitionOutcome",
    "TransitionResult",
    "classify_transition",
    "summarize",
]
