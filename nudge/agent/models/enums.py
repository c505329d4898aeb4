"""Enums for the notification engine domain."""

from enum import Enum


class AgentType(str, Enum):
    """Behavioural category of automated messaging."""

    ONBOARDING = "ONBOARDING"
    PERSONALIZATION = "PERSONALIZATION"
    RETENTION = "RETENTION"
    MOOD_WELLNESS = "MOOD_WELLNESS"
    STREAK_GAMIFICATION = "STREAK_GAMIFICATION"
    SUBSCRIPTION = "SUBSCRIPTION"
    CONTENT_SCHEDULING = "CONTENT_SCHEDULING"
    SLEEP = "SLEEP"
    INSTRUCTOR = "INSTRUCTOR"
    SUPPORT = "SUPPORT"


class Channel(str, Enum):
    """Delivery channels a rule can target."""

    PUSH = "PUSH"
    EMAIL = "EMAIL"
    IN_APP = "IN_APP"
    SMS = "SMS"


class ActionType(str, Enum):
    """What a rule does when it fires."""

    SEND_NOTIFICATION = "SEND_NOTIFICATION"


class DeliveryStatus(str, Enum):
    """Delivery lifecycle states.

    PENDING → SENT → DELIVERED → OPENED → CLICKED is the forward path.
    FAILED and BOUNCED are terminal and only reachable from PENDING/SENT.
    """

    PENDING = "PENDING"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    OPENED = "OPENED"
    CLICKED = "CLICKED"
    FAILED = "FAILED"
    BOUNCED = "BOUNCED"
