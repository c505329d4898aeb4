"""API route registration."""

from fastapi import APIRouter, FastAPI

from nudge.config.settings import Settings
from nudge.observability.logging import get_logger

logger = get_logger(__name__)


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all routes."""
    router = APIRouter(prefix="/v1")

    from nudge.api.routes.analytics import router as analytics_router
    from nudge.api.routes.catalog import router as catalog_router
    from nudge.api.routes.deliveries import router as deliveries_router
    from nudge.api.routes.events import router as events_router
    from nudge.api.routes.recipients import router as recipients_router

    router.include_router(events_router, tags=["Events"])
    router.include_router(deliveries_router, tags=["Deliveries"])
    router.include_router(analytics_router, tags=["Analytics"])
    router.include_router(catalog_router, tags=["Catalog"])
    router.include_router(recipients_router, tags=["Recipients"])

    logger.debug(
        "v1_router_created",
        routes=["events", "deliveries", "analytics", "catalog", "recipients"],
    )

    return router


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all routes with the FastAPI application."""
    app.include_router(create_v1_router())

    from nudge.api.routes.health import get_metrics
    from nudge.api.routes.health import router as health_router

    app.include_router(health_router, tags=["Health"])

    metrics = settings.observability.metrics
    if metrics.enabled:
        app.add_api_route(metrics.path, get_metrics, methods=["GET"], tags=["Health"])

    logger.info("routes_registered", metrics_path=metrics.path if metrics.enabled else None)
