"""Test factories for rule, template and event data."""

from typing import Any

from nudge.agent.models import AgentType, Channel, Event


class RuleFactory:
    """Factory for raw rule entries as a rule source returns them."""

    @staticmethod
    def create(
        *,
        id: str = "rule_test",
        name: str = "Test Rule",
        agent_type: AgentType = AgentType.RETENTION,
        trigger_event: str = "user_inactive",
        trigger_conditions: dict[str, Any] | None = None,
        channel: Channel = Channel.PUSH,
        template_id: str | None = "tpl_test",
        priority: int = 50,
        cooldown_hours: float | None = None,
        is_active: bool = True,
    ) -> dict[str, Any]:
        """Create a camelCase rule entry with sensible defaults."""
        action_config: dict[str, Any] = {"channel": channel.value}
        if template_id is not None:
            action_config["templateId"] = template_id

        entry: dict[str, Any] = {
            "id": id,
            "name": name,
            "agentType": agent_type.value,
            "triggerEvent": trigger_event,
            "triggerConditions": trigger_conditions or {},
            "actionType": "SEND_NOTIFICATION",
            "actionConfig": action_config,
            "priority": priority,
            "isActive": is_active,
        }
        if cooldown_hours is not None:
            entry["cooldownHours"] = cooldown_hours
        return entry


class TemplateFactory:
    """Factory for raw template entries."""

    @staticmethod
    def create(
        *,
        id: str = "tpl_test",
        name: str = "Test Template",
        agent_type: AgentType = AgentType.RETENTION,
        channel: Channel = Channel.PUSH,
        title_en: str = "Hello {{user.firstName}}",
        body_en: str = "It has been {{daysSinceActive}} days.",
        title_tr: str | None = "Merhaba {{user.firstName}}",
        body_tr: str | None = "{{daysSinceActive}} gün oldu.",
        action_url: str | None = "/meditations",
        variables: list[str] | None = None,
        is_active: bool = True,
    ) -> dict[str, Any]:
        """Create a template entry using the flat per-locale columns."""
        entry: dict[str, Any] = {
            "id": id,
            "name": name,
            "agentType": agent_type.value,
            "channel": channel.value,
            "titleEn": title_en,
            "bodyEn": body_en,
            "actionUrl": action_url,
            "variables": (
                variables if variables is not None else ["user.firstName", "daysSinceActive"]
            ),
            "isActive": is_active,
        }
        if title_tr is not None:
            entry["titleTr"] = title_tr
        if body_tr is not None:
            entry["bodyTr"] = body_tr
        return entry


class EventFactory:
    """Factory for Event instances."""

    @staticmethod
    def create(
        *,
        trigger_event: str = "user_inactive",
        recipient_id: str = "user-1",
        context: dict[str, Any] | None = None,
        locale: str | None = "en",
    ) -> Event:
        """Create an Event with a context that satisfies the default factories."""
        return Event(
            trigger_event=trigger_event,
            recipient_id=recipient_id,
            context=(
                context
                if context is not None
                else {"user": {"firstName": "Ada"}, "daysSinceActive": 7}
            ),
            locale=locale,
        )

    @staticmethod
    def payload(
        *,
        trigger_event: str = "user_inactive",
        recipient_id: str = "user-1",
        context: dict[str, Any] | None = None,
        locale: str | None = "en",
    ) -> dict[str, Any]:
        """Create the camelCase JSON body an API client would post."""
        return EventFactory.create(
            trigger_event=trigger_event,
            recipient_id=recipient_id,
            context=context,
            locale=locale,
        ).model_dump(mode="json", by_alias=True, exclude={"occurred_at"})
