"""Recipient notification preferences."""

from datetime import datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from nudge.agent.models.base import StorageModel
from nudge.agent.models.enums import AgentType, Channel


def _default_daily_caps() -> dict[Channel, int]:
    return {Channel.PUSH: 5, Channel.EMAIL: 2}


def _default_enabled() -> dict[Channel, bool]:
    return {
        Channel.PUSH: True,
        Channel.EMAIL: True,
        Channel.IN_APP: True,
        Channel.SMS: False,
    }


class RecipientPreferences(StorageModel):
    """What a recipient has opted into, and when they may be contacted."""

    recipient_id: str
    enabled_channels: dict[Channel, bool] = Field(default_factory=_default_enabled)
    quiet_hours_start: str | None = Field(default=None, description="HH:MM local time")
    quiet_hours_end: str | None = Field(default=None, description="HH:MM local time")
    daily_caps: dict[Channel, int] = Field(
        default_factory=_default_daily_caps,
        description="Max messages per channel per local day; absent = unlimited",
    )
    timezone: str = Field(default="UTC", description="IANA timezone name")
    disabled_agents: list[AgentType] = Field(default_factory=list)

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_clock(cls, v: str | None) -> str | None:
        if v is not None:
            _parse_clock(v)
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    def channel_enabled(self, channel: Channel) -> bool:
        return self.enabled_channels.get(channel, False)

    def local_time(self, now: datetime) -> datetime:
        """Convert an aware datetime to the recipient's timezone."""
        return now.astimezone(ZoneInfo(self.timezone))

    def in_quiet_hours(self, now: datetime) -> bool:
        """Whether `now` falls inside the quiet window (which may span midnight)."""
        if not self.quiet_hours_start or not self.quiet_hours_end:
            return False

        current = self.local_time(now).time()
        start = _parse_clock(self.quiet_hours_start)
        end = _parse_clock(self.quiet_hours_end)

        if start == end:
            return False
        if start < end:
            return start <= current < end
        return current >= start or current < end


def _parse_clock(value: str) -> time:
    hours, _, minutes = value.partition(":")
    try:
        return time(int(hours), int(minutes or 0))
    except ValueError as e:
        raise ValueError(f"Invalid HH:MM value: {value!r}") from e
