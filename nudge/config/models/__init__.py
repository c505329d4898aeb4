"""Configuration section models."""

from nudge.config.models.api import APIConfig
from nudge.config.models.engine import (
    ChannelsConfig,
    ChannelTransportConfig,
    CooldownConfig,
    EngineConfig,
)
from nudge.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)

__all__ = [
    "APIConfig",
    "ChannelsConfig",
    "ChannelTransportConfig",
    "CooldownConfig",
    "EngineConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
]
