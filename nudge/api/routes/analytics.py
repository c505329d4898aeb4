"""Delivery analytics endpoint."""

from datetime import datetime

from fastapi import APIRouter, Query

from nudge.agent.delivery import DeliveryQuery
from nudge.agent.models import AgentType, Channel
from nudge.api.dependencies import TrackerDep
from nudge.api.exceptions import StoreUnavailableError
from nudge.api.models.analytics import AnalyticsResponse
from nudge.db.errors import StoreError
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics")


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(
    tracker: TrackerDep,
    recipient_id: str | None = Query(default=None),
    channel: Channel | None = Query(default=None),
    agent_type: AgentType | None = Query(default=None),
    rule_id: str | None = Query(default=None),
    created_from: datetime | None = Query(default=None, description="Inclusive"),
    created_to: datetime | None = Query(default=None, description="Exclusive"),
) -> AnalyticsResponse:
    """Delivery, open and click rates with daily and agent-type breakdowns."""
    query = DeliveryQuery(
        recipient_id=recipient_id,
        channel=channel,
        agent_type=agent_type,
        rule_id=rule_id,
        created_from=created_from,
        created_to=created_to,
    )
    logger.debug("analytics_request")

    try:
        analytics = await tracker.analytics(query)
    except StoreError as e:
        raise StoreUnavailableError(str(e)) from e

    return AnalyticsResponse.from_analytics(analytics)
