"""Delivery log and status callback endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query

from nudge.agent.delivery import DeliveryQuery, TransitionOutcome, TransitionResult
from nudge.agent.models import AgentType, Channel, DeliveryRecord, DeliveryStatus
from nudge.api.dependencies import DeliveryStoreDep, SettingsDep, TrackerDep
from nudge.api.exceptions import (
    DeliveryNotFoundError,
    StoreUnavailableError,
    TransitionConflictError,
)
from nudge.api.models.deliveries import (
    ProviderCallbackRequest,
    StatusUpdateRequest,
    TransitionResponse,
)
from nudge.api.models.errors import ErrorResponse
from nudge.api.models.pagination import PaginatedResponse
from nudge.db.errors import ConflictError, StoreError
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/deliveries")


def _map_transition(result: TransitionResult, not_found: str) -> TransitionResponse:
    if result.outcome == TransitionOutcome.NOT_FOUND:
        raise DeliveryNotFoundError(not_found)
    return TransitionResponse(outcome=result.outcome.value, delivery=result.record)


@router.get("", response_model=PaginatedResponse[DeliveryRecord])
async def list_deliveries(
    store: DeliveryStoreDep,
    settings: SettingsDep,
    recipient_id: str | None = Query(default=None),
    channel: Channel | None = Query(default=None),
    status: DeliveryStatus | None = Query(default=None),
    agent_type: AgentType | None = Query(default=None),
    rule_id: str | None = Query(default=None),
    created_from: datetime | None = Query(default=None, description="Inclusive"),
    created_to: datetime | None = Query(default=None, description="Exclusive"),
    limit: int | None = Query(default=None, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse[DeliveryRecord]:
    """List delivery records, newest first."""
    limit = limit or settings.api.default_page_size
    query = DeliveryQuery(
        recipient_id=recipient_id,
        channel=channel,
        status=status,
        agent_type=agent_type,
        rule_id=rule_id,
        created_from=created_from,
        created_to=created_to,
    )
    logger.debug("list_deliveries_request", limit=limit, offset=offset)

    try:
        total = await store.count(query)
        records = await store.query(query, limit=limit, offset=offset)
    except StoreError as e:
        raise StoreUnavailableError(str(e)) from e

    return PaginatedResponse[DeliveryRecord](
        items=records,
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(records) < total,
    )


@router.get("/{delivery_id}", response_model=DeliveryRecord)
async def get_delivery(delivery_id: UUID, store: DeliveryStoreDep) -> DeliveryRecord:
    """Get one delivery record."""
    record = await store.get(delivery_id)
    if record is None:
        raise DeliveryNotFoundError(f"Delivery {delivery_id} not found")
    return record


@router.post("/{delivery_id}/status", response_model=TransitionResponse)
async def update_status(
    delivery_id: UUID,
    request: StatusUpdateRequest,
    tracker: TrackerDep,
) -> TransitionResponse:
    """Report a delivery status change for a known record.

    Duplicate and backward transitions are acknowledged without changing
    the record; the response says which outcome applied.
    """
    logger.info("delivery_status_request", delivery_id=str(delivery_id), status=request.status.value)

    try:
        result = await tracker.apply(
            delivery_id, request.status, at=request.at, error=request.error
        )
    except ConflictError as e:
        raise TransitionConflictError(str(e)) from e

    return _map_transition(result, f"Delivery {delivery_id} not found")


@router.post(
    "/callbacks/{channel}",
    response_model=TransitionResponse,
    responses={
        404: {
            "model": ErrorResponse,
            "description": "No record carries this message id yet; retry later",
        }
    },
)
async def provider_callback(
    channel: Channel,
    request: ProviderCallbackRequest,
    tracker: TrackerDep,
) -> TransitionResponse:
    """Apply a status reported by a channel provider, addressed by its message id.

    The message id is stored when the hand-off returns, so a callback that
    races ahead of it gets 404 DELIVERY_NOT_FOUND. Relays should retry
    such callbacks with backoff.
    """
    logger.info(
        "delivery_callback_request",
        channel=channel.value,
        status=request.status.value,
    )

    try:
        result = await tracker.apply_provider_status(
            channel,
            request.provider_message_id,
            request.status,
            at=request.at,
            error=request.error,
        )
    except ConflictError as e:
        raise TransitionConflictError(str(e)) from e

    return _map_transition(
        result, f"No {channel.value} delivery with message id {request.provider_message_id}"
    )
