"""Agent orchestrator: the entry point for trigger events.

handle(event):
1. Check recipient preferences (quiet hours decline the event)
2. Select dispatch plans (cooldowns and daily-cap slots are taken here)
3. Render each plan; a render failure skips only that plan
4. Record each plan as PENDING, then hand all of them to their
   channels concurrently, each send with its own timeout
5. Move each record to SENT or FAILED

Only an unavailable catalog, cooldown store or preference store declines
the whole event.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from nudge.agent.channels import ChannelDispatcher
from nudge.agent.delivery import DeliveryTracker
from nudge.agent.errors import (
    CatalogUnavailableError,
    CooldownStoreUnavailableError,
    MissingVariableError,
)
from nudge.agent.models import (
    Channel,
    DeliveryRecord,
    DeliveryStatus,
    Event,
    RecipientPreferences,
    RenderedContent,
    utc_now,
)
from nudge.agent.rendering import TemplateRenderer
from nudge.agent.selection import ChannelBudget, DispatchPlan, RuleSelector, SkippedRule
from nudge.agent.stores import PreferenceStore
from nudge.db.errors import StoreError
from nudge.observability.logging import bind_event_context, clear_event_context, get_logger
from nudge.observability.metrics import EVENTS_DECLINED, EVENTS_HANDLED

logger = get_logger(__name__)


class DeclineReason(str, Enum):
    QUIET_HOURS = "quiet_hours"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    COOLDOWN_STORE_UNAVAILABLE = "cooldown_store_unavailable"
    PREFERENCES_UNAVAILABLE = "preferences_unavailable"


class PlanStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    RENDER_FAILED = "render_failed"


@dataclass(frozen=True)
class PlanOutcome:
    """What happened to one dispatch plan."""

    rule_id: str
    channel: Channel
    status: PlanStatus
    delivery_id: UUID | None = None
    error: str | None = None


@dataclass
class HandleResult:
    """Outcome of handling one event."""

    trigger_event: str
    recipient_id: str
    outcomes: list[PlanOutcome] = field(default_factory=list)
    skipped: list[SkippedRule] = field(default_factory=list)
    declined: DeclineReason | None = None

    @property
    def sent(self) -> list[PlanOutcome]:
        return [o for o in self.outcomes if o.status == PlanStatus.SENT]


class AgentOrchestrator:
    """Drives selector, renderer, dispatcher and tracker for each event."""

    def __init__(
        self,
        selector: RuleSelector,
        renderer: TemplateRenderer,
        dispatcher: ChannelDispatcher,
        tracker: DeliveryTracker,
        preferences: PreferenceStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize orchestrator.

        Args:
            selector: Rule selector
            renderer: Template renderer
            dispatcher: Channel dispatcher
            tracker: Delivery tracker
            preferences: Recipient preferences; when omitted no quiet
                hours, opt-outs or daily caps are applied
            clock: Time source
        """
        self._selector = selector
        self._renderer = renderer
        self._dispatcher = dispatcher
        self._tracker = tracker
        self._preferences = preferences
        self._clock = clock

    async def handle(self, event: Event) -> HandleResult:
        """Handle one trigger event end to end."""
        bind_event_context(trigger_event=event.trigger_event, recipient_id=event.recipient_id)
        try:
            return await self._handle(event)
        finally:
            clear_event_context("trigger_event", "recipient_id")

    async def _handle(self, event: Event) -> HandleResult:
        EVENTS_HANDLED.labels(trigger_event=event.trigger_event).inc()
        result = HandleResult(trigger_event=event.trigger_event, recipient_id=event.recipient_id)
        now = self._clock()

        budget: ChannelBudget | None = None
        if self._preferences is not None:
            try:
                preferences = await self._preferences.get(event.recipient_id)
            except StoreError as e:
                logger.error("preferences_lookup_failed", error=str(e))
                return self._decline(result, DeclineReason.PREFERENCES_UNAVAILABLE)
            preferences = preferences or RecipientPreferences(recipient_id=event.recipient_id)
            if preferences.in_quiet_hours(now):
                return self._decline(result, DeclineReason.QUIET_HOURS)
            budget = ChannelBudget(preferences, now)

        try:
            selection = await self._selector.evaluate(event, budget)
        except CatalogUnavailableError:
            return self._decline(result, DeclineReason.CATALOG_UNAVAILABLE)
        except CooldownStoreUnavailableError:
            return self._decline(result, DeclineReason.COOLDOWN_STORE_UNAVAILABLE)

        result.skipped = selection.skipped

        ready: list[tuple[DispatchPlan, RenderedContent]] = []
        for plan in selection.plans:
            try:
                content = self._renderer.render_compiled(plan.template, event.locale, event.context)
            except MissingVariableError as e:
                logger.warning(
                    "plan_render_failed",
                    rule_id=plan.rule_id,
                    template_id=plan.template_id,
                    placeholder=e.placeholder,
                )
                result.outcomes.append(
                    PlanOutcome(
                        rule_id=plan.rule_id,
                        channel=plan.channel,
                        status=PlanStatus.RENDER_FAILED,
                        error=e.message,
                    )
                )
                continue
            ready.append((plan, content))

        deliveries = await asyncio.gather(
            *(self._deliver(event, plan, content) for plan, content in ready)
        )
        result.outcomes.extend(deliveries)

        logger.info(
            "event_handled",
            plans=len(selection.plans),
            sent=len(result.sent),
            skipped=len(result.skipped),
        )
        return result

    async def _deliver(
        self,
        event: Event,
        plan: DispatchPlan,
        content: RenderedContent,
    ) -> PlanOutcome:
        record = DeliveryRecord(
            recipient_id=event.recipient_id,
            channel=plan.channel,
            rule_id=plan.rule_id,
            template_id=plan.template_id,
            agent_type=plan.rule.agent_type,
            trigger_event=event.trigger_event,
            title=content.title,
            body=content.body,
            action_url=content.action_url,
            locale=content.locale,
            created_at=self._clock(),
        )
        try:
            await self._tracker.create_pending(record)
        except StoreError as e:
            logger.error("delivery_record_create_failed", rule_id=plan.rule_id, error=str(e))
            return PlanOutcome(
                rule_id=plan.rule_id,
                channel=plan.channel,
                status=PlanStatus.FAILED,
                error=f"Delivery record not created: {e}",
            )

        handle = await self._dispatcher.send(plan.channel, event.recipient_id, content)

        if handle.accepted:
            status, outcome = DeliveryStatus.SENT, PlanStatus.SENT
        else:
            status, outcome = DeliveryStatus.FAILED, PlanStatus.FAILED

        try:
            await self._tracker.apply(
                record.id,
                status,
                at=self._clock(),
                error=handle.error,
                provider_message_id=handle.provider_message_id,
            )
        except StoreError as e:
            logger.error(
                "delivery_status_update_failed",
                delivery_id=str(record.id),
                status=status.value,
                error=str(e),
            )

        return PlanOutcome(
            rule_id=plan.rule_id,
            channel=plan.channel,
            status=outcome,
            delivery_id=record.id,
            error=handle.error,
        )

    def _decline(self, result: HandleResult, reason: DeclineReason) -> HandleResult:
        EVENTS_DECLINED.labels(trigger_event=result.trigger_event, reason=reason.value).inc()
        logger.warning("event_declined", reason=reason.value)
        result.declined = reason
        return result
