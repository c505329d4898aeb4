"""Tests for rule sources and the preference store."""

from pathlib import Path
from unittest.mock import patch

import pytest

from nudge.agent.models import RecipientPreferences
from nudge.agent.stores import InMemoryPreferenceStore, InMemoryRuleSource, TomlRuleSource
from nudge.db.errors import ConnectionError, StoreError
from tests.factories import RuleFactory, TemplateFactory


class TestTomlRuleSource:
    @pytest.mark.asyncio
    async def test_reads_rules_and_templates(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.toml"
        path.write_text(
            """
[[rules]]
id = "rule_a"
agentType = "RETENTION"
triggerEvent = "user_inactive"
triggerConditions = { daysSinceActive = 7 }
actionConfig = { channel = "PUSH", templateId = "tpl_a" }

[[templates]]
id = "tpl_a"
agentType = "RETENTION"
channel = "PUSH"
titleEn = "Hi"
bodyEn = "Come back"
""",
            encoding="utf-8",
        )
        source = TomlRuleSource(path)

        rules = await source.list_rules()
        templates = await source.list_templates()

        assert rules[0]["triggerConditions"] == {"daysSinceActive": 7}
        assert templates[0]["titleEn"] == "Hi"

    @pytest.mark.asyncio
    async def test_empty_file_has_no_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.toml"
        path.write_text("", encoding="utf-8")

        assert await TomlRuleSource(path).list_rules() == []

    @pytest.mark.asyncio
    async def test_missing_file_is_a_store_error(self, tmp_path: Path) -> None:
        source = TomlRuleSource(tmp_path / "missing.toml")

        with pytest.raises(ConnectionError) as exc_info:
            await source.list_rules()

        assert isinstance(exc_info.value, StoreError)

    @pytest.mark.asyncio
    async def test_invalid_toml_is_a_store_error(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.toml"
        path.write_text("[[rules]\nid = ", encoding="utf-8")

        with pytest.raises(ConnectionError):
            await TomlRuleSource(path).list_templates()

    @pytest.mark.asyncio
    async def test_load_parses_the_file_once(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.toml"
        path.write_text(
            '[[rules]]\nid = "rule_a"\n\n[[templates]]\nid = "tpl_a"\n', encoding="utf-8"
        )
        source = TomlRuleSource(path)

        with patch.object(source, "_read_sync", wraps=source._read_sync) as read:
            rules, templates = await source.load()

        assert read.call_count == 1
        assert [r["id"] for r in rules] == ["rule_a"]
        assert [t["id"] for t in templates] == ["tpl_a"]


class TestInMemoryRuleSource:
    @pytest.mark.asyncio
    async def test_load_returns_rules_and_templates(self) -> None:
        source = InMemoryRuleSource(
            rules=[RuleFactory.create()], templates=[TemplateFactory.create()]
        )

        rules, templates = await source.load()

        assert [r["id"] for r in rules] == ["rule_test"]
        assert [t["id"] for t in templates] == ["tpl_test"]

    @pytest.mark.asyncio
    async def test_entries_are_copied(self) -> None:
        rule = RuleFactory.create(trigger_conditions={"daysSinceActive": 7})
        source = InMemoryRuleSource(rules=[rule], templates=[TemplateFactory.create()])
        rule["priority"] = 1

        listed = await source.list_rules()
        listed[0]["triggerConditions"]["daysSinceActive"] = 99

        again = await source.list_rules()
        assert again[0]["priority"] == 50
        assert again[0]["triggerConditions"] == {"daysSinceActive": 7}

    @pytest.mark.asyncio
    async def test_put_replaces_and_remove_deletes(self) -> None:
        source = InMemoryRuleSource(rules=[RuleFactory.create()])
        source.put_rule(RuleFactory.create(priority=10))
        source.put_rule(RuleFactory.create(id="rule_other"))
        source.remove_rule("rule_other")

        rules = await source.list_rules()

        assert [(r["id"], r["priority"]) for r in rules] == [("rule_test", 10)]


class TestInMemoryPreferenceStore:
    @pytest.mark.asyncio
    async def test_unknown_recipient_has_no_preferences(self) -> None:
        assert await InMemoryPreferenceStore().get("user-1") is None

    @pytest.mark.asyncio
    async def test_save_replaces(self) -> None:
        store = InMemoryPreferenceStore()
        await store.save(RecipientPreferences(recipient_id="user-1", timezone="Europe/Istanbul"))
        await store.save(RecipientPreferences(recipient_id="user-1", timezone="UTC"))

        saved = await store.get("user-1")

        assert saved.timezone == "UTC"
