"""Notification engine: rules, cooldowns, rendering, dispatch and delivery tracking.

Typical wiring:
    catalog = RuleCatalog(TomlRuleSource(path))
    selector = RuleSelector(catalog, InMemoryCooldownStore())
    orchestrator = AgentOrchestrator(
        selector=selector,
        renderer=TemplateRenderer(catalog),
        dispatcher=dispatcher,
        tracker=DeliveryTracker(InMemoryDeliveryStore()),
    )
    result = await orchestrator.handle(event)
"""

from nudge.agent.catalog import CatalogSnapshot, RuleCatalog
from nudge.agent.conditions import ConditionEvaluator, compile_conditions
from nudge.agent.orchestrator import AgentOrchestrator, HandleResult
from nudge.agent.rendering import TemplateRenderer
from nudge.agent.selection import RuleSelector

__all__ = [
    "AgentOrchestrator",
    "CatalogSnapshot",
    "ConditionEvaluator",
    "HandleResult",
    "RuleCatalog",
    "RuleSelector",
    "TemplateRenderer",
    "compile_conditions",
]
