"""Fixtures for API route tests.

Each test gets a small FastAPI app with the v1 routes, the global
exception handlers and in-memory components injected through
dependency overrides.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from nudge.agent.catalog import RuleCatalog
from nudge.agent.channels import ChannelDispatcher, InAppChannelAdapter
from nudge.agent.cooldown import InMemoryCooldownStore
from nudge.agent.delivery import InMemoryDeliveryStore
from nudge.agent.models import AgentType, Channel
from nudge.agent.stores import InMemoryPreferenceStore, InMemoryRuleSource
from nudge.api.app import _register_exception_handlers
from nudge.api.dependencies import (
    get_catalog,
    get_cooldown_store,
    get_delivery_store,
    get_dispatcher,
    get_inbox,
    get_preference_store,
    get_settings,
    reset_dependencies,
)
from nudge.api.routes import create_v1_router
from nudge.api.routes.health import router as health_router
from nudge.config.settings import Settings
from tests.factories import RuleFactory, TemplateFactory


class PushRelay:
    """Push adapter that records what it was handed."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    @property
    def channel(self) -> Channel:
        return Channel.PUSH

    async def send(
        self, recipient_id: str, title: str, body: str, action_url: str | None
    ) -> str | None:
        self.sent.append((recipient_id, title))
        return f"fcm-{len(self.sent)}"


@pytest.fixture
def rule_source() -> InMemoryRuleSource:
    return InMemoryRuleSource(
        rules=[
            RuleFactory.create(
                id="rule_retention_7day",
                trigger_conditions={"daysSinceActive": 7},
                priority=75,
                cooldown_hours=24,
            ),
            RuleFactory.create(
                id="rule_welcome_inbox",
                agent_type=AgentType.ONBOARDING,
                trigger_event="user_registered",
                channel=Channel.IN_APP,
                template_id="tpl_welcome_inbox",
            ),
        ],
        templates=[
            TemplateFactory.create(),
            TemplateFactory.create(
                id="tpl_welcome_inbox",
                agent_type=AgentType.ONBOARDING,
                channel=Channel.IN_APP,
                title_en="Welcome {{user.firstName}}",
                body_en="Your first session is waiting.",
                title_tr=None,
                body_tr=None,
                variables=["user.firstName"],
            ),
        ],
    )


@pytest.fixture
def catalog(rule_source: InMemoryRuleSource) -> RuleCatalog:
    return RuleCatalog(rule_source)


@pytest.fixture
def delivery_store() -> InMemoryDeliveryStore:
    return InMemoryDeliveryStore()


@pytest.fixture
def preference_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def inbox() -> InAppChannelAdapter:
    return InAppChannelAdapter()


@pytest.fixture
def push_relay() -> PushRelay:
    return PushRelay()


@pytest.fixture
def dispatcher(inbox: InAppChannelAdapter, push_relay: PushRelay) -> ChannelDispatcher:
    dispatcher = ChannelDispatcher(timeout_seconds=1)
    dispatcher.register_adapter(inbox)
    dispatcher.register_adapter(push_relay)
    return dispatcher


@pytest.fixture
async def app(
    catalog: RuleCatalog,
    delivery_store: InMemoryDeliveryStore,
    preference_store: InMemoryPreferenceStore,
    inbox: InAppChannelAdapter,
    dispatcher: ChannelDispatcher,
) -> AsyncGenerator[FastAPI, None]:
    """Create test FastAPI app."""
    await reset_dependencies()

    app = FastAPI()
    _register_exception_handlers(app)
    app.include_router(create_v1_router())
    app.include_router(health_router)

    cooldowns = InMemoryCooldownStore()
    app.dependency_overrides[get_settings] = lambda: Settings()
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_cooldown_store] = lambda: cooldowns
    app.dependency_overrides[get_delivery_store] = lambda: delivery_store
    app.dependency_overrides[get_preference_store] = lambda: preference_store
    app.dependency_overrides[get_inbox] = lambda: inbox
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    yield app

    await reset_dependencies()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client over a catalog that has not been loaded."""
    return TestClient(app)


@pytest.fixture
def loaded_client(client: TestClient) -> TestClient:
    """Test client over a loaded catalog."""
    response = client.post("/v1/catalog/refresh")
    assert response.status_code == 200
    return client

