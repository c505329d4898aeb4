"""Rule selection: candidates, condition match, priority order, cooldown.

Selection is sequential in priority order. Each surviving candidate
acquires its own cooldown inside the loop, so a denied rule never stops
lower-priority rules from being considered, and a lower-priority rule
can never acquire ahead of a higher-priority one.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from nudge.agent.catalog import CompiledRule, RuleCatalog
from nudge.agent.conditions import ConditionEvaluator
from nudge.agent.cooldown import CooldownScope, CooldownStore, cooldown_key
from nudge.agent.models import Channel, Event, RecipientPreferences, Rule, utc_now
from nudge.agent.rendering import CompiledTemplate
from nudge.observability.logging import get_logger
from nudge.observability.metrics import COOLDOWN_DENIED, RULES_MATCHED

logger = get_logger(__name__)


class SelectionSkip(str, Enum):
    """Why a matching rule did not make it into the plan."""

    CHANNEL_DISABLED = "channel_disabled"
    AGENT_DISABLED = "agent_disabled"
    DAILY_CAP = "daily_cap"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class DispatchPlan:
    """A rule that fired, with its resolved channel and template."""

    rule: Rule
    channel: Channel
    template: CompiledTemplate
    cooldown_key: str

    @property
    def rule_id(self) -> str:
        return self.rule.id

    @property
    def template_id(self) -> str:
        return self.template.id


@dataclass(frozen=True)
class SkippedRule:
    rule_id: str
    reason: SelectionSkip


@dataclass
class Selection:
    """Outcome of evaluating one event."""

    plans: list[DispatchPlan] = field(default_factory=list)
    skipped: list[SkippedRule] = field(default_factory=list)
    matched: int = 0


class ChannelBudget:
    """What a recipient's preferences allow for this event.

    Opt-outs are checked locally. Daily caps are slots reserved in the
    cooldown store under one counter per (recipient, channel, local day),
    so concurrent events for the same recipient share one count.
    """

    def __init__(self, preferences: RecipientPreferences, now: datetime | None = None) -> None:
        self._preferences = preferences
        local = preferences.local_time(now or utc_now())
        self._day = local.date()
        midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
        self._expires_at = midnight + timedelta(days=1)

    @property
    def expires_at(self) -> datetime:
        """End of the recipient's local day."""
        return self._expires_at

    def check(self, rule: Rule) -> SelectionSkip | None:
        """Return the opt-out that blocks the rule, or None."""
        if rule.agent_type in self._preferences.disabled_agents:
            return SelectionSkip.AGENT_DISABLED
        if not self._preferences.channel_enabled(rule.channel):
            return SelectionSkip.CHANNEL_DISABLED
        return None

    def cap(self, channel: Channel) -> int | None:
        """Daily limit on `channel`; None when uncapped."""
        return self._preferences.daily_caps.get(channel)

    def counter_key(self, channel: Channel) -> str:
        return f"cap:{self._preferences.recipient_id}:{channel.value}:{self._day.isoformat()}"


class RuleSelector:
    """Turns an event into an ordered list of dispatch plans."""

    def __init__(
        self,
        catalog: RuleCatalog,
        cooldowns: CooldownStore,
        evaluator: ConditionEvaluator | None = None,
        scope: CooldownScope = CooldownScope.RULE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize selector.

        Args:
            catalog: Source of indexed active rules
            cooldowns: Atomic cooldown store
            evaluator: Condition evaluator
            scope: Cooldown key scope
            clock: Time source for cooldown stamps
        """
        self._catalog = catalog
        self._cooldowns = cooldowns
        self._evaluator = evaluator or ConditionEvaluator()
        self._scope = scope
        self._clock = clock

    async def select(
        self,
        event: Event,
        budget: ChannelBudget | None = None,
    ) -> list[DispatchPlan]:
        """Select dispatch plans for an event, highest priority first.

        Raises:
            CatalogUnavailableError: If no catalog has been loaded
            CooldownStoreUnavailableError: If the cooldown store is down
        """
        selection = await self.evaluate(event, budget)
        return selection.plans

    async def evaluate(
        self,
        event: Event,
        budget: ChannelBudget | None = None,
    ) -> Selection:
        """Like `select`, also reporting which matching rules were skipped."""
        candidates = self._catalog.snapshot().candidates(event.trigger_event)

        matched = [
            rule
            for rule in candidates
            if self._evaluator.matches(rule.predicates, event.context)
        ]
        RULES_MATCHED.labels(trigger_event=event.trigger_event).observe(len(matched))

        selection = Selection(matched=len(matched))
        if not matched:
            logger.debug(
                "no_rules_matched",
                trigger_event=event.trigger_event,
                candidates=len(candidates),
            )
            return selection

        # Candidates are indexed in priority order already
        for compiled in matched:
            skip = await self._admit(compiled, event, budget)
            if skip is not None:
                selection.skipped.append(SkippedRule(rule_id=compiled.id, reason=skip))
                logger.info(
                    "rule_skipped",
                    rule_id=compiled.id,
                    priority=compiled.priority,
                    reason=skip.value,
                )
                continue

            selection.plans.append(
                DispatchPlan(
                    rule=compiled.rule,
                    channel=compiled.channel,
                    template=compiled.template,
                    cooldown_key=cooldown_key(self._scope, compiled.rule, event.recipient_id),
                )
            )

        logger.info(
            "rules_selected",
            matched=len(matched),
            selected=[plan.rule_id for plan in selection.plans],
        )
        return selection

    async def _admit(
        self,
        compiled: CompiledRule,
        event: Event,
        budget: ChannelBudget | None,
    ) -> SelectionSkip | None:
        now = self._clock()
        counter_key: str | None = None
        if budget is not None:
            skip = budget.check(compiled.rule)
            if skip is not None:
                return skip
            cap = budget.cap(compiled.channel)
            if cap is not None:
                counter_key = budget.counter_key(compiled.channel)
                if not await self._cooldowns.try_reserve(
                    counter_key, cap, budget.expires_at, now=now
                ):
                    return SelectionSkip.DAILY_CAP

        key = cooldown_key(self._scope, compiled.rule, event.recipient_id)
        acquired = await self._cooldowns.try_acquire(
            key,
            compiled.rule.cooldown_hours,
            now=now,
        )
        if not acquired:
            COOLDOWN_DENIED.labels(rule_id=compiled.id).inc()
            if counter_key is not None:
                await self._cooldowns.release(counter_key)
            return SelectionSkip.COOLDOWN

        return None
