"""Notification engine domain models.

- Rules: prioritized trigger → action definitions
- Templates: localized message copy with declared placeholders
- Events: ephemeral trigger input
- DeliveryRecords: dispatched messages and their lifecycle
- RecipientPreferences: opt-ins, quiet hours and daily caps
"""

from nudge.agent.models.base import StorageModel, utc_now
from nudge.agent.models.delivery import DeliveryRecord
from nudge.agent.models.enums import ActionType, AgentType, Channel, DeliveryStatus
from nudge.agent.models.event import Event
from nudge.agent.models.preferences import RecipientPreferences
from nudge.agent.models.rule import ActionConfig, Rule
from nudge.agent.models.template import LocalizedContent, RenderedContent, Template

__all__ = [
    # Base
    "StorageModel",
    "utc_now",
    # Enums
    "ActionType",
    "AgentType",
    "Channel",
    "DeliveryStatus",
    # Rules and templates
    "ActionConfig",
    "Rule",
    "LocalizedContent",
    "RenderedContent",
    "Template",
    # Runtime
    "Event",
    "DeliveryRecord",
    "RecipientPreferences",
]
