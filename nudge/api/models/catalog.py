"""Catalog summary models."""

from datetime import datetime

from nudge.agent.catalog import CatalogSnapshot
from nudge.agent.models import AgentType, Channel, StorageModel


class CatalogRuleSummary(StorageModel):
    id: str
    name: str
    agent_type: AgentType
    trigger_event: str
    channel: Channel
    template_id: str
    priority: int
    cooldown_hours: float | None = None


class RejectedEntryResponse(StorageModel):
    kind: str
    entry_id: str | None = None
    reason: str


class CatalogResponse(StorageModel):
    version: int
    loaded_at: datetime
    active_rules: int
    templates: int
    rules: list[CatalogRuleSummary]
    inactive_rule_ids: list[str]
    rejected: list[RejectedEntryResponse]

    @classmethod
    def from_snapshot(cls, snapshot: CatalogSnapshot) -> "CatalogResponse":
        rules = [
            CatalogRuleSummary(
                id=compiled.id,
                name=compiled.rule.name,
                agent_type=compiled.agent_type,
                trigger_event=compiled.rule.trigger_event,
                channel=compiled.channel,
                template_id=compiled.template.id,
                priority=compiled.priority,
                cooldown_hours=compiled.rule.cooldown_hours,
            )
            for event in sorted(snapshot.rules_by_event)
            for compiled in snapshot.rules_by_event[event]
        ]
        return cls(
            version=snapshot.version,
            loaded_at=snapshot.loaded_at,
            active_rules=snapshot.active_rule_count,
            templates=len(snapshot.templates),
            rules=rules,
            inactive_rule_ids=list(snapshot.inactive_rule_ids),
            rejected=[
                RejectedEntryResponse(kind=r.kind, entry_id=r.entry_id, reason=r.reason)
                for r in snapshot.rejected
            ],
        )
