"""Test factories for creating test data."""

from tests.factories.catalog import EventFactory, RuleFactory, TemplateFactory

__all__ = [
    "EventFactory",
    "RuleFactory",
    "TemplateFactory",
]
