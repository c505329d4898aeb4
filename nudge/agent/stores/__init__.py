"""Collaborator stores: rule/template source and recipient preferences."""

from nudge.agent.stores.inmemory import InMemoryPreferenceStore, InMemoryRuleSource
from nudge.agent.stores.preferences import PreferenceStore
from nudge.agent.stores.source import RuleSource
from nudge.agent.stores.toml import TomlRuleSource

__all__ = [
    "RuleSource",
    "InMemoryRuleSource",
    "TomlRuleSource",
    "PreferenceStore",
    "InMemoryPreferenceStore",
]
