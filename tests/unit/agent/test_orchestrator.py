"""Tests for AgentOrchestrator."""

import asyncio
from datetime import UTC, datetime

import pytest

from nudge.agent.catalog import RuleCatalog
from nudge.agent.channels import ChannelDispatcher
from nudge.agent.cooldown import InMemoryCooldownStore
from nudge.agent.delivery import DeliveryQuery, DeliveryTracker, InMemoryDeliveryStore
from nudge.agent.errors import TransportFailure
from nudge.agent.models import Channel, DeliveryStatus, RecipientPreferences
from nudge.agent.orchestrator import AgentOrchestrator, DeclineReason, PlanStatus
from nudge.agent.rendering import TemplateRenderer
from nudge.agent.selection import RuleSelector, SelectionSkip
from nudge.agent.stores import InMemoryPreferenceStore, InMemoryRuleSource, PreferenceStore
from nudge.db.errors import ConnectionError as StoreConnectionError
from tests.factories import EventFactory, RuleFactory, TemplateFactory

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


class RecordingAdapter:
    def __init__(self, channel: Channel = Channel.PUSH, fail: bool = False) -> None:
        self._channel = channel
        self._fail = fail
        self.sent: list[tuple[str, str, str]] = []

    @property
    def channel(self) -> Channel:
        return self._channel

    async def send(
        self, recipient_id: str, title: str, body: str, action_url: str | None
    ) -> str | None:
        if self._fail:
            raise TransportFailure("relay returned HTTP 503", self._channel.value)
        self.sent.append((recipient_id, title, body))
        return f"msg-{len(self.sent)}"


class UnreachablePreferenceStore(PreferenceStore):
    async def get(self, recipient_id: str) -> RecipientPreferences | None:
        raise StoreConnectionError("preferences down")

    async def save(self, preferences: RecipientPreferences) -> None:
        raise StoreConnectionError("preferences down")


class Harness:
    def __init__(self, rules: list[dict], adapter: RecordingAdapter | None = None) -> None:
        self.source = InMemoryRuleSource(rules=rules, templates=[TemplateFactory.create()])
        self.catalog = RuleCatalog(self.source)
        self.store = InMemoryDeliveryStore()
        self.tracker = DeliveryTracker(self.store)
        self.preferences = InMemoryPreferenceStore()
        self.adapter = adapter or RecordingAdapter()
        self.dispatcher = ChannelDispatcher(timeout_seconds=1)
        self.dispatcher.register_adapter(self.adapter)
        self.orchestrator = AgentOrchestrator(
            selector=RuleSelector(self.catalog, InMemoryCooldownStore(), clock=lambda: NOW),
            renderer=TemplateRenderer(self.catalog),
            dispatcher=self.dispatcher,
            tracker=self.tracker,
            preferences=self.preferences,
            clock=lambda: NOW,
        )

    async def records(self) -> list:
        return await self.store.query(DeliveryQuery())


class TestAgentOrchestrator:
    @pytest.mark.asyncio
    async def test_matching_rule_is_rendered_sent_and_tracked(self) -> None:
        harness = Harness([RuleFactory.create(trigger_conditions={"daysSinceActive": 7})])
        await harness.catalog.refresh()

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.declined is None
        assert [o.status for o in result.outcomes] == [PlanStatus.SENT]
        assert harness.adapter.sent == [("user-1", "Hello Ada", "It has been 7 days.")]

        records = await harness.records()
        assert len(records) == 1
        record = records[0]
        assert record.id == result.outcomes[0].delivery_id
        assert record.status == DeliveryStatus.SENT
        assert record.provider_message_id == "msg-1"
        assert record.sent_at == NOW
        assert record.title == "Hello Ada"

    @pytest.mark.asyncio
    async def test_locale_variant_is_used(self) -> None:
        harness = Harness([RuleFactory.create()])
        await harness.catalog.refresh()

        await harness.orchestrator.handle(EventFactory.create(locale="tr-TR"))

        records = await harness.records()
        assert records[0].locale == "tr"
        assert records[0].title == "Merhaba Ada"

    @pytest.mark.asyncio
    async def test_no_match_sends_nothing(self) -> None:
        harness = Harness([RuleFactory.create(trigger_conditions={"daysSinceActive": 30})])
        await harness.catalog.refresh()

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.outcomes == []
        assert await harness.records() == []

    @pytest.mark.asyncio
    async def test_unloaded_catalog_declines(self) -> None:
        harness = Harness([RuleFactory.create()])

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.declined == DeclineReason.CATALOG_UNAVAILABLE
        assert harness.adapter.sent == []

    @pytest.mark.asyncio
    async def test_quiet_hours_decline(self) -> None:
        harness = Harness([RuleFactory.create()])
        await harness.catalog.refresh()
        await harness.preferences.save(
            RecipientPreferences(
                recipient_id="user-1", quiet_hours_start="11:00", quiet_hours_end="13:00"
            )
        )

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.declined == DeclineReason.QUIET_HOURS
        assert await harness.records() == []

    @pytest.mark.asyncio
    async def test_render_failure_skips_only_that_plan(self) -> None:
        harness = Harness(
            [
                RuleFactory.create(id="rule_a", priority=90),
                RuleFactory.create(id="rule_b", priority=10),
            ]
        )
        await harness.catalog.refresh()
        event = EventFactory.create(context={"user": {"firstName": "Ada"}})

        result = await harness.orchestrator.handle(event)

        assert [o.status for o in result.outcomes] == [
            PlanStatus.RENDER_FAILED,
            PlanStatus.RENDER_FAILED,
        ]
        assert "daysSinceActive" in result.outcomes[0].error
        assert await harness.records() == []

    @pytest.mark.asyncio
    async def test_transport_failure_marks_record_failed(self) -> None:
        harness = Harness([RuleFactory.create()], adapter=RecordingAdapter(fail=True))
        await harness.catalog.refresh()

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.outcomes[0].status == PlanStatus.FAILED
        record = (await harness.records())[0]
        assert record.status == DeliveryStatus.FAILED
        assert record.error == "relay returned HTTP 503"
        assert record.failed_at == NOW

    @pytest.mark.asyncio
    async def test_missing_adapter_marks_record_failed(self) -> None:
        harness = Harness(
            [RuleFactory.create()], adapter=RecordingAdapter(channel=Channel.EMAIL)
        )
        await harness.catalog.refresh()

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.outcomes[0].status == PlanStatus.FAILED
        assert "No adapter registered" in result.outcomes[0].error

    @pytest.mark.asyncio
    async def test_daily_cap_limits_sends(self) -> None:
        harness = Harness(
            [
                RuleFactory.create(id="rule_a", priority=90),
                RuleFactory.create(id="rule_b", priority=10),
            ]
        )
        await harness.catalog.refresh()
        await harness.preferences.save(
            RecipientPreferences(recipient_id="user-1", daily_caps={Channel.PUSH: 1})
        )

        result = await harness.orchestrator.handle(EventFactory.create())

        assert [o.rule_id for o in result.sent] == ["rule_a"]
        assert [(s.rule_id, s.reason) for s in result.skipped] == [
            ("rule_b", SelectionSkip.DAILY_CAP)
        ]

        second = await harness.orchestrator.handle(EventFactory.create())
        assert second.sent == []

    @pytest.mark.asyncio
    async def test_disabled_channel_is_skipped(self) -> None:
        harness = Harness([RuleFactory.create()])
        await harness.catalog.refresh()
        await harness.preferences.save(
            RecipientPreferences(recipient_id="user-1", enabled_channels={Channel.PUSH: False})
        )

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.sent == []
        assert result.skipped[0].reason == SelectionSkip.CHANNEL_DISABLED

    @pytest.mark.asyncio
    async def test_concurrent_events_respect_cooldown(self) -> None:
        harness = Harness([RuleFactory.create(cooldown_hours=24)])
        await harness.catalog.refresh()

        results = await asyncio.gather(
            *(harness.orchestrator.handle(EventFactory.create()) for _ in range(5))
        )

        assert sum(len(r.sent) for r in results) == 1
        assert len(await harness.records()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_events_respect_daily_cap(self) -> None:
        harness = Harness([RuleFactory.create()])
        await harness.catalog.refresh()
        await harness.preferences.save(
            RecipientPreferences(recipient_id="user-1", daily_caps={Channel.PUSH: 1})
        )

        results = await asyncio.gather(
            *(harness.orchestrator.handle(EventFactory.create()) for _ in range(5))
        )

        assert sum(len(r.sent) for r in results) == 1
        assert len(await harness.records()) == 1
        skipped = [s.reason for r in results for s in r.skipped]
        assert skipped == [SelectionSkip.DAILY_CAP] * 4

    @pytest.mark.asyncio
    async def test_preference_store_outage_declines(self) -> None:
        harness = Harness([RuleFactory.create()])
        await harness.catalog.refresh()
        harness.orchestrator = AgentOrchestrator(
            selector=RuleSelector(harness.catalog, InMemoryCooldownStore(), clock=lambda: NOW),
            renderer=TemplateRenderer(harness.catalog),
            dispatcher=harness.dispatcher,
            tracker=harness.tracker,
            preferences=UnreachablePreferenceStore(),
            clock=lambda: NOW,
        )

        result = await harness.orchestrator.handle(EventFactory.create())

        assert result.declined == DeclineReason.PREFERENCES_UNAVAILABLE
        assert harness.adapter.sent == []
        assert await harness.records() == []
