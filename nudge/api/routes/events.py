"""Event intake endpoints."""

import asyncio

from fastapi import APIRouter

from nudge.agent.models import Event
from nudge.agent.orchestrator import HandleResult
from nudge.api.dependencies import OrchestratorDep
from nudge.api.models.events import (
    BatchEventRequest,
    BatchEventResponse,
    EventResponse,
    PlanOutcomeResponse,
    SkippedRuleResponse,
)
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/events")


def _map_result_to_response(result: HandleResult) -> EventResponse:
    return EventResponse(
        trigger_event=result.trigger_event,
        recipient_id=result.recipient_id,
        declined=result.declined.value if result.declined else None,
        outcomes=[
            PlanOutcomeResponse(
                rule_id=o.rule_id,
                channel=o.channel,
                status=o.status.value,
                delivery_id=o.delivery_id,
                error=o.error,
            )
            for o in result.outcomes
        ],
        skipped=[
            SkippedRuleResponse(rule_id=s.rule_id, reason=s.reason.value)
            for s in result.skipped
        ],
    )


@router.post("", response_model=EventResponse)
async def handle_event(event: Event, orchestrator: OrchestratorDep) -> EventResponse:
    """Evaluate one event and dispatch whatever it fires."""
    logger.debug("handle_event_request", trigger_event=event.trigger_event)

    result = await orchestrator.handle(event)
    return _map_result_to_response(result)


@router.post("/batch", response_model=BatchEventResponse)
async def handle_batch(
    request: BatchEventRequest,
    orchestrator: OrchestratorDep,
) -> BatchEventResponse:
    """Handle several events concurrently."""
    logger.info("handle_batch_request", events=len(request.events))

    results = await asyncio.gather(*(orchestrator.handle(e) for e in request.events))

    return BatchEventResponse(
        events_processed=len(results),
        messages_sent=sum(len(r.sent) for r in results),
        results=[_map_result_to_response(r) for r in results],
    )
