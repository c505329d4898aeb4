"""In-memory implementations of RuleSource and PreferenceStore."""

import copy
from typing import Any

from nudge.agent.models import RecipientPreferences
from nudge.agent.stores.preferences import PreferenceStore
from nudge.agent.stores.source import RuleSource


class InMemoryRuleSource(RuleSource):
    """In-memory RuleSource for testing and development.

    Entries are stored as given and handed out as deep copies, so a caller
    mutating a returned entry never changes what the next load sees.
    """

    def __init__(
        self,
        rules: list[dict[str, Any]] | None = None,
        templates: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize with optional seed entries."""
        self._rules: dict[str, dict[str, Any]] = {}
        self._templates: dict[str, dict[str, Any]] = {}
        for rule in rules or []:
            self.put_rule(rule)
        for template in templates or []:
            self.put_template(template)

    def put_rule(self, rule: dict[str, Any]) -> None:
        """Add or replace a rule entry by id."""
        self._rules[str(rule.get("id"))] = copy.deepcopy(rule)

    def put_template(self, template: dict[str, Any]) -> None:
        """Add or replace a template entry by id."""
        self._templates[str(template.get("id"))] = copy.deepcopy(template)

    def remove_rule(self, rule_id: str) -> None:
        self._rules.pop(rule_id, None)

    async def list_rules(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._rules.values()]

    async def list_templates(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(t) for t in self._templates.values()]


class InMemoryPreferenceStore(PreferenceStore):
    """In-memory PreferenceStore for testing and development."""

    def __init__(self) -> None:
        self._preferences: dict[str, RecipientPreferences] = {}

    async def get(self, recipient_id: str) -> RecipientPreferences | None:
        return self._preferences.get(recipient_id)

    async def save(self, preferences: RecipientPreferences) -> None:
        self._preferences[preferences.recipient_id] = preferences
