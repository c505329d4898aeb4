"""Rule models."""

from typing import Any

from pydantic import Field

from nudge.agent.models.base import StorageModel
from nudge.agent.models.enums import ActionType, AgentType, Channel


class ActionConfig(StorageModel):
    """Where a fired rule sends its message."""

    channel: Channel = Field(..., description="Delivery channel")
    template_id: str | None = Field(
        default=None,
        description="Template to render; resolved by (agent type, channel) when absent",
    )


class Rule(StorageModel):
    """A prioritized notification rule.

    Rules are authored through the admin surface and are read-only to the
    engine. `trigger_conditions` is an ordered mapping of dotted context
    path to expected value or comparator; all entries must hold.
    """

    id: str = Field(..., description="Rule identifier")
    name: str = Field(default="", description="Human-readable name")
    description: str | None = Field(default=None, description="What the rule is for")
    agent_type: AgentType = Field(..., description="Behavioural category")
    trigger_event: str = Field(..., min_length=1, description="Event key the rule listens to")
    trigger_conditions: dict[str, Any] = Field(
        default_factory=dict,
        description="Context conditions, ANDed",
    )
    action_type: ActionType = Field(
        default=ActionType.SEND_NOTIFICATION,
        description="Action performed when fired",
    )
    action_config: ActionConfig = Field(..., description="Channel and template")
    priority: int = Field(default=0, description="Higher fires first")
    cooldown_hours: float | None = Field(
        default=None,
        ge=0,
        description="Minimum hours between fires per recipient (0/None = none)",
    )
    is_active: bool = Field(default=True, description="Whether the rule can be selected")

    @property
    def has_cooldown(self) -> bool:
        """Whether this rule suppresses re-fires."""
        return bool(self.cooldown_hours)

    @property
    def channel(self) -> Channel:
        """Delivery channel from the action config."""
        return self.action_config.channel
