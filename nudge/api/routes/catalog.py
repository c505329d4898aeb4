"""Rule catalog inspection endpoints."""

from fastapi import APIRouter

from nudge.agent.errors import CatalogUnavailableError
from nudge.api.dependencies import CatalogDep
from nudge.api.exceptions import CatalogUnavailableAPIError
from nudge.api.models.catalog import CatalogResponse
from nudge.db.errors import StoreError
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/catalog")


@router.get("", response_model=CatalogResponse)
async def get_catalog(catalog: CatalogDep) -> CatalogResponse:
    """Summary of the currently published snapshot."""
    try:
        snapshot = catalog.snapshot()
    except CatalogUnavailableError as e:
        raise CatalogUnavailableAPIError(e.message) from e
    return CatalogResponse.from_snapshot(snapshot)


@router.post("/refresh", response_model=CatalogResponse)
async def refresh_catalog(catalog: CatalogDep) -> CatalogResponse:
    """Reload the rule source now instead of waiting for the next poll."""
    logger.info("catalog_refresh_request")

    try:
        snapshot = await catalog.refresh()
    except StoreError as e:
        raise CatalogUnavailableAPIError(f"Catalog refresh failed: {e}") from e
    return CatalogResponse.from_snapshot(snapshot)
