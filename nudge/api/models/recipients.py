"""Recipient preference request models."""

from pydantic import Field

from nudge.agent.models import AgentType, Channel, StorageModel


class PreferencesUpdate(StorageModel):
    """Replacement preferences; omitted fields keep their defaults."""

    enabled_channels: dict[Channel, bool] | None = None
    quiet_hours_start: str | None = Field(default=None, description="HH:MM local time")
    quiet_hours_end: str | None = Field(default=None, description="HH:MM local time")
    daily_caps: dict[Channel, int] | None = None
    timezone: str | None = Field(default=None, description="IANA timezone name")
    disabled_agents: list[AgentType] | None = None
