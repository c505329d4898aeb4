"""Health check and metrics endpoints."""

from typing import Literal

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from nudge import __version__
from nudge.api.dependencies import CatalogDep, CooldownStoreDep, DeliveryStoreDep, DispatcherDep
from nudge.api.models.health import ComponentHealth, HealthResponse
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _check_component(component: object, name: str) -> ComponentHealth:
    if component is None:
        return ComponentHealth(name=name, status="unhealthy", message="Not initialized")
    return ComponentHealth(name=name, status="healthy")


@router.get("/health", response_model=HealthResponse)
async def health_check(
    catalog: CatalogDep,
    cooldown_store: CooldownStoreDep,
    delivery_store: DeliveryStoreDep,
    dispatcher: DispatcherDep,
) -> HealthResponse:
    """Check service health status.

    The catalog is unhealthy until its first successful load, since every
    event is declined until then. A dispatcher serving only the in-app
    inbox is reported as degraded.
    """
    logger.debug("health_check_request")

    if catalog.loaded:
        snapshot = catalog.snapshot()
        catalog_health = ComponentHealth(
            name="catalog",
            status="degraded" if snapshot.rejected else "healthy",
            message=f"version {snapshot.version}, {len(snapshot.rejected)} rejected entries",
        )
    else:
        catalog_health = ComponentHealth(
            name="catalog", status="unhealthy", message="Catalog not loaded"
        )

    channels = sorted(c.value for c in dispatcher.channels)
    dispatcher_health = ComponentHealth(
        name="dispatcher",
        status="healthy" if len(channels) > 1 else "degraded",
        message=", ".join(channels),
    )

    components = [
        catalog_health,
        _check_component(cooldown_store, "cooldown_store"),
        _check_component(delivery_store, "delivery_store"),
        dispatcher_health,
    ]

    unhealthy_count = sum(1 for c in components if c.status == "unhealthy")
    degraded_count = sum(1 for c in components if c.status == "degraded")

    overall_status: Literal["healthy", "degraded", "unhealthy"]
    if unhealthy_count > 0:
        overall_status = "unhealthy"
    elif degraded_count > 0:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    logger.debug("health_check_completed", status=overall_status)

    return HealthResponse(status=overall_status, version=__version__, components=components)


async def get_metrics() -> Response:
    """Prometheus metrics in text format for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
