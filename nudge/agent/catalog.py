"""Rule catalog: validated, indexed snapshots of rules and templates.

A snapshot is built from raw source entries in one pass. Entries that
fail validation (bad fields, unknown condition operators, undeclared
placeholders, missing templates) are excluded and recorded as rejected;
the rest of the catalog still loads. Snapshots are immutable and are
published by replacing a single reference, so readers always see one
complete snapshot.
"""

import asyncio
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from nudge.agent.conditions import Predicate, compile_conditions
from nudge.agent.errors import (
    CatalogUnavailableError,
    ConfigurationError,
    TemplateNotFoundError,
)
from nudge.agent.models import AgentType, Channel, Rule, Template, utc_now
from nudge.agent.rendering import CompiledTemplate, compile_template
from nudge.agent.stores.source import RuleSource
from nudge.db.errors import StoreError
from nudge.observability.logging import get_logger
from nudge.observability.metrics import CATALOG_REJECTED, CATALOG_RULES

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """An active rule with its compiled predicates and resolved template."""

    rule: Rule
    predicates: tuple[Predicate, ...]
    template: CompiledTemplate

    @property
    def id(self) -> str:
        return self.rule.id

    @property
    def priority(self) -> int:
        return self.rule.priority

    @property
    def channel(self) -> Channel:
        return self.rule.channel

    @property
    def agent_type(self) -> AgentType:
        return self.rule.agent_type


@dataclass(frozen=True)
class RejectedEntry:
    """A source entry excluded from the catalog."""

    kind: str
    entry_id: str | None
    reason: str


@dataclass(frozen=True)
class CatalogSnapshot:
    """One consistent view of the catalog."""

    version: int
    loaded_at: datetime
    rules_by_event: Mapping[str, tuple[CompiledRule, ...]]
    templates: Mapping[str, CompiledTemplate]
    inactive_rule_ids: tuple[str, ...] = ()
    rejected: tuple[RejectedEntry, ...] = field(default_factory=tuple)

    def candidates(self, trigger_event: str) -> tuple[CompiledRule, ...]:
        """Active rules listening to `trigger_event`, highest priority first."""
        return self.rules_by_event.get(trigger_event, ())

    @property
    def active_rule_count(self) -> int:
        return sum(len(rules) for rules in self.rules_by_event.values())


def priority_order(rule: CompiledRule) -> tuple[int, str]:
    """Sort key: priority descending, then rule id."""
    return (-rule.priority, rule.id)


def build_snapshot(
    raw_rules: list[dict[str, Any]],
    raw_templates: list[dict[str, Any]],
    *,
    default_locale: str = "en",
    version: int = 1,
    loaded_at: datetime | None = None,
) -> CatalogSnapshot:
    """Validate and index raw source entries into a snapshot."""
    rejected: list[RejectedEntry] = []

    def reject(kind: str, entry: Mapping[str, Any], reason: str) -> None:
        entry_id = entry.get("id") if isinstance(entry, Mapping) else None
        rejected.append(RejectedEntry(kind=kind, entry_id=entry_id, reason=reason))
        logger.warning("catalog_entry_rejected", kind=kind, entry_id=entry_id, reason=reason)

    templates: dict[str, CompiledTemplate] = {}
    for raw in raw_templates:
        try:
            template = Template.model_validate(raw)
            if template.id in templates:
                raise ConfigurationError("Duplicate template id", template.id)
            if not template.is_active:
                continue
            templates[template.id] = compile_template(template, default_locale)
        except ValidationError as e:
            reject("template", raw, _validation_reason(e))
        except ConfigurationError as e:
            reject("template", raw, e.message)

    by_category: dict[tuple[AgentType, Channel], CompiledTemplate] = {}
    for template_id in sorted(templates):
        compiled = templates[template_id]
        key = (compiled.template.agent_type, compiled.template.channel)
        by_category.setdefault(key, compiled)

    index: dict[str, list[CompiledRule]] = defaultdict(list)
    seen: set[str] = set()
    inactive: list[str] = []
    for raw in raw_rules:
        try:
            rule = Rule.model_validate(raw)
            if rule.id in seen:
                raise ConfigurationError("Duplicate rule id", rule.id)
            seen.add(rule.id)
            if not rule.is_active:
                inactive.append(rule.id)
                continue
            predicates = compile_conditions(rule.trigger_conditions, rule.id)
            template = _resolve_template(rule, templates, by_category)
            index[rule.trigger_event].append(
                CompiledRule(rule=rule, predicates=predicates, template=template)
            )
        except ValidationError as e:
            reject("rule", raw, _validation_reason(e))
        except ConfigurationError as e:
            reject("rule", raw, e.message)

    rules_by_event = {
        event: tuple(sorted(rules, key=priority_order)) for event, rules in index.items()
    }

    return CatalogSnapshot(
        version=version,
        loaded_at=loaded_at or utc_now(),
        rules_by_event=MappingProxyType(rules_by_event),
        templates=MappingProxyType(templates),
        inactive_rule_ids=tuple(inactive),
        rejected=tuple(rejected),
    )


def _resolve_template(
    rule: Rule,
    templates: Mapping[str, CompiledTemplate],
    by_category: Mapping[tuple[AgentType, Channel], CompiledTemplate],
) -> CompiledTemplate:
    template_id = rule.action_config.template_id
    if template_id:
        compiled = templates.get(template_id)
        if compiled is None:
            raise TemplateNotFoundError(f"Template '{template_id}' not found or inactive", rule.id)
    else:
        compiled = by_category.get((rule.agent_type, rule.channel))
        if compiled is None:
            raise TemplateNotFoundError(
                f"No active template for {rule.agent_type.value}/{rule.channel.value}",
                rule.id,
            )

    if compiled.template.channel != rule.channel:
        raise ConfigurationError(
            f"Template '{compiled.id}' is written for {compiled.template.channel.value}, "
            f"rule sends via {rule.channel.value}",
            rule.id,
        )
    return compiled


def _validation_reason(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


class RuleCatalog:
    """Periodically refreshed view of the rule source.

    `snapshot()` returns the current snapshot; a failed refresh keeps the
    last good one. Before the first successful load the catalog is
    unavailable and selection must decline events.
    """

    def __init__(
        self,
        source: RuleSource,
        default_locale: str = "en",
        refresh_seconds: float = 60,
    ) -> None:
        """Initialize catalog.

        Args:
            source: Rule and template source
            default_locale: Locale every template must provide
            refresh_seconds: Polling interval of the background refresher
        """
        self._source = source
        self._default_locale = default_locale
        self._refresh_seconds = refresh_seconds
        self._snapshot: CatalogSnapshot | None = None
        self._refresh_lock = asyncio.Lock()
        self._running = False
        self._poll_task: asyncio.Task | None = None

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def snapshot(self) -> CatalogSnapshot:
        """Current snapshot.

        Raises:
            CatalogUnavailableError: If no snapshot has been loaded yet
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise CatalogUnavailableError("Rule catalog has not been loaded")
        return snapshot

    async def refresh(self) -> CatalogSnapshot:
        """Load the source and publish a new snapshot.

        Raises:
            StoreError: If the source cannot be read; the previous snapshot
                stays published
        """
        async with self._refresh_lock:
            raw_rules, raw_templates = await self._source.load()

            version = self._snapshot.version + 1 if self._snapshot else 1
            snapshot = build_snapshot(
                raw_rules,
                raw_templates,
                default_locale=self._default_locale,
                version=version,
            )
            self._snapshot = snapshot

        CATALOG_RULES.set(snapshot.active_rule_count)
        CATALOG_REJECTED.set(len(snapshot.rejected))
        logger.info(
            "catalog_refreshed",
            version=snapshot.version,
            active_rules=snapshot.active_rule_count,
            templates=len(snapshot.templates),
            rejected=len(snapshot.rejected),
        )
        return snapshot

    async def start(self) -> None:
        """Load once and start the background refresh loop."""
        if self._running:
            logger.warning("catalog_refresher_already_running")
            return

        await self._refresh_safely()
        self._running = True
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info("catalog_refresher_started", refresh_seconds=self._refresh_seconds)

    async def stop(self) -> None:
        """Stop the background refresh loop."""
        if not self._running:
            return

        self._running = False
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

        logger.info("catalog_refresher_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._refresh_seconds)
            try:
                await self._refresh_safely()
            except Exception as e:
                logger.error("catalog_poll_loop_error", error=str(e))

    async def _refresh_safely(self) -> None:
        try:
            await self.refresh()
        except StoreError as e:
            logger.error(
                "catalog_refresh_failed",
                error=str(e),
                serving_version=self._snapshot.version if self._snapshot else None,
            )
