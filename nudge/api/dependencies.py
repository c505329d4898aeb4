"""Dependency injection for API routes.

Provides FastAPI dependencies for the engine components used by API
endpoints. Components are built once from settings and can be overridden
for testing.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from nudge.agent.catalog import RuleCatalog
from nudge.agent.channels import ChannelDispatcher, InAppChannelAdapter, build_dispatcher
from nudge.agent.cooldown import (
    CooldownScope,
    CooldownStore,
    InMemoryCooldownStore,
    RedisCooldownStore,
)
from nudge.agent.delivery import DeliveryStore, DeliveryTracker, InMemoryDeliveryStore
from nudge.agent.orchestrator import AgentOrchestrator
from nudge.agent.rendering import TemplateRenderer
from nudge.agent.selection import RuleSelector
from nudge.agent.stores import InMemoryPreferenceStore, PreferenceStore, TomlRuleSource
from nudge.config.loader import get_config_dir, load_config
from nudge.config.settings import Settings, set_toml_config
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

# Client instances - shared across components
_redis_client: redis.Redis | None = None

# Component instances - created once and reused
_catalog: RuleCatalog | None = None
_cooldown_store: CooldownStore | None = None
_delivery_store: DeliveryStore | None = None
_preference_store: PreferenceStore | None = None
_inbox: InAppChannelAdapter | None = None
_dispatcher: ChannelDispatcher | None = None
_orchestrator: AgentOrchestrator | None = None


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Loads configuration from TOML files and environment variables.
    Cached to avoid reloading on every request.
    """
    try:
        set_toml_config(load_config())
    except FileNotFoundError:
        logger.warning("config_file_not_found", msg="Using default configuration")
        set_toml_config({})

    return Settings()


def get_redis_client(settings: Settings) -> redis.Redis:
    """Get the shared Redis client, creating it on first access."""
    global _redis_client
    if _redis_client is None:
        url = settings.engine.cooldown.redis_url
        _redis_client = redis.from_url(url, decode_responses=True)
        logger.info("redis_client_created", url=url.split("@")[-1])
    return _redis_client


def get_catalog(settings: Annotated[Settings, Depends(get_settings)]) -> RuleCatalog:
    """Get the RuleCatalog backed by the configured TOML file."""
    global _catalog
    if _catalog is None:
        path = Path(settings.engine.catalog_path)
        if not path.is_absolute():
            path = get_config_dir() / path
        _catalog = RuleCatalog(
            TomlRuleSource(path),
            default_locale=settings.engine.default_locale,
            refresh_seconds=settings.engine.catalog_refresh_seconds,
        )
        logger.info("catalog_initialized", path=str(path))
    return _catalog


def get_cooldown_store(settings: Annotated[Settings, Depends(get_settings)]) -> CooldownStore:
    """Get the CooldownStore for the configured backend."""
    global _cooldown_store
    if _cooldown_store is None:
        config = settings.engine.cooldown
        if config.backend == "redis":
            _cooldown_store = RedisCooldownStore(
                get_redis_client(settings),
                key_prefix=config.key_prefix,
                retention_hours=config.retention_hours,
            )
        else:
            _cooldown_store = InMemoryCooldownStore()
        logger.info("cooldown_store_initialized", backend=config.backend, scope=config.scope)
    return _cooldown_store


def get_delivery_store() -> DeliveryStore:
    """Get the DeliveryStore instance."""
    global _delivery_store
    if _delivery_store is None:
        _delivery_store = InMemoryDeliveryStore()
        logger.info("delivery_store_initialized", store_type="inmemory")
    return _delivery_store


def get_preference_store() -> PreferenceStore:
    """Get the PreferenceStore instance."""
    global _preference_store
    if _preference_store is None:
        _preference_store = InMemoryPreferenceStore()
        logger.info("preference_store_initialized", store_type="inmemory")
    return _preference_store


def get_inbox(settings: Annotated[Settings, Depends(get_settings)]) -> InAppChannelAdapter:
    """Get the in-app inbox adapter."""
    global _inbox
    if _inbox is None:
        _inbox = InAppChannelAdapter(max_messages=settings.channels.inbox_size)
    return _inbox


def get_dispatcher(
    settings: Annotated[Settings, Depends(get_settings)],
    inbox: Annotated[InAppChannelAdapter, Depends(get_inbox)],
) -> ChannelDispatcher:
    """Get the ChannelDispatcher with the in-app and configured relays."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher(settings, inbox=inbox)
        logger.info(
            "dispatcher_initialized",
            channels=[c.value for c in _dispatcher.channels],
        )
    return _dispatcher


def get_tracker(
    store: Annotated[DeliveryStore, Depends(get_delivery_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DeliveryTracker:
    """Get a DeliveryTracker over the shared delivery store."""
    return DeliveryTracker(store, max_retries=settings.engine.transition_retries)


def get_orchestrator(
    settings: Annotated[Settings, Depends(get_settings)],
    catalog: Annotated[RuleCatalog, Depends(get_catalog)],
    cooldowns: Annotated[CooldownStore, Depends(get_cooldown_store)],
    dispatcher: Annotated[ChannelDispatcher, Depends(get_dispatcher)],
    tracker: Annotated[DeliveryTracker, Depends(get_tracker)],
    preferences: Annotated[PreferenceStore, Depends(get_preference_store)],
) -> AgentOrchestrator:
    """Get the AgentOrchestrator wired to the shared components."""
    global _orchestrator
    if _orchestrator is None:
        selector = RuleSelector(
            catalog,
            cooldowns,
            scope=CooldownScope(settings.engine.cooldown.scope),
        )
        renderer = TemplateRenderer(catalog, default_locale=settings.engine.default_locale)
        _orchestrator = AgentOrchestrator(
            selector=selector,
            renderer=renderer,
            dispatcher=dispatcher,
            tracker=tracker,
            preferences=preferences,
        )
        logger.info("orchestrator_initialized")
    return _orchestrator


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
CatalogDep = Annotated[RuleCatalog, Depends(get_catalog)]
CooldownStoreDep = Annotated[CooldownStore, Depends(get_cooldown_store)]
DeliveryStoreDep = Annotated[DeliveryStore, Depends(get_delivery_store)]
PreferenceStoreDep = Annotated[PreferenceStore, Depends(get_preference_store)]
InboxDep = Annotated[InAppChannelAdapter, Depends(get_inbox)]
DispatcherDep = Annotated[ChannelDispatcher, Depends(get_dispatcher)]
TrackerDep = Annotated[DeliveryTracker, Depends(get_tracker)]
OrchestratorDep = Annotated[AgentOrchestrator, Depends(get_orchestrator)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing and shutdown. Stops the catalog refresher and closes
    connections before resetting.
    """
    global _redis_client, _catalog, _cooldown_store, _delivery_store
    global _preference_store, _inbox, _dispatcher, _orchestrator

    if _catalog is not None:
        await _catalog.stop()
        _catalog = None

    if _dispatcher is not None:
        await _dispatcher.close()
        _dispatcher = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    _cooldown_store = None
    _delivery_store = None
    _preference_store = None
    _inbox = None
    _orchestrator = None
    get_settings.cache_clear()
