"""Notification engine configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

CooldownScopeName = Literal["rule", "rule_and_agent_type", "agent_type"]
CooldownBackend = Literal["inmemory", "redis"]


class CooldownConfig(BaseModel):
    """Cooldown store configuration."""

    backend: CooldownBackend = Field(
        default="inmemory",
        description="Backing store for cooldown records",
    )
    scope: CooldownScopeName = Field(
        default="rule",
        description="Which identifiers make up a cooldown key",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL when backend is redis",
    )
    key_prefix: str = Field(default="cooldown", description="Redis key prefix")
    retention_hours: int | None = Field(
        default=24 * 90,
        gt=0,
        description="How long cooldown records are kept (None = forever)",
    )


class EngineConfig(BaseModel):
    """Rule engine, rendering and dispatch configuration."""

    default_locale: str = Field(
        default="en",
        description="Locale used when a template lacks the requested one",
    )
    catalog_path: str = Field(
        default="catalog.toml",
        description="TOML file holding rules and templates; relative paths resolve against the config directory",
    )
    catalog_refresh_seconds: float = Field(
        default=60.0,
        gt=0,
        description="How often the rule catalog is reloaded",
    )
    dispatch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-send timeout for channel hand-off",
    )
    transition_retries: int = Field(
        default=5,
        ge=1,
        description="Compare-and-set attempts per delivery status update",
    )
    cooldown: CooldownConfig = Field(
        default_factory=CooldownConfig,
        description="Cooldown store settings",
    )


class ChannelTransportConfig(BaseModel):
    """HTTP relay configuration for one delivery channel."""

    enabled: bool = Field(default=False, description="Register this channel")
    url: str | None = Field(default=None, description="Relay endpoint URL")
    auth_token: str | None = Field(default=None, description="Bearer token")
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="HTTP timeout for the relay call",
    )


class ChannelsConfig(BaseModel):
    """Transport configuration per channel.

    IN_APP is always served by the built-in inbox adapter.
    """

    inbox_size: int = Field(
        default=50,
        ge=1,
        description="Messages kept per recipient in the in-app inbox",
    )
    push: ChannelTransportConfig = Field(default_factory=ChannelTransportConfig)
    email: ChannelTransportConfig = Field(default_factory=ChannelTransportConfig)
    sms: ChannelTransportConfig = Field(default_factory=ChannelTransportConfig)
