"""Delivery tracker: the delivery status state machine.

    PENDING → SENT → DELIVERED → OPENED → CLICKED
    PENDING/SENT → FAILED | BOUNCED

Transitions only move forward; states may be skipped (a provider can
report OPENED without ever reporting DELIVERED). Re-applying the current
status is a duplicate and changes nothing. Anything else (moving back,
failing after delivery, leaving FAILED/BOUNCED) is an anomalous
transition: it is logged and the record is left unchanged. Neither case
is an error to the caller.

Each applied transition stamps its own timestamp unless it is already set,
and is written with compare-and-set on the record version.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from nudge.agent.delivery.analytics import DeliveryAnalytics, summarize
from nudge.agent.delivery.store import DeliveryQuery, DeliveryStore
from nudge.agent.models import Channel, DeliveryRecord, DeliveryStatus, utc_now
from nudge.db.errors import ConflictError
from nudge.observability.logging import get_logger
from nudge.observability.metrics import DELIVERY_TRANSITIONS

logger = get_logger(__name__)

FORWARD_RANK: dict[DeliveryStatus, int] = {
    DeliveryStatus.PENDING: 0,
    DeliveryStatus.SENT: 1,
    DeliveryStatus.DELIVERED: 2,
    DeliveryStatus.OPENED: 3,
    DeliveryStatus.CLICKED: 4,
}

FAILURE_STATES = frozenset({DeliveryStatus.FAILED, DeliveryStatus.BOUNCED})
FAILABLE_FROM = frozenset({DeliveryStatus.PENDING, DeliveryStatus.SENT})

TIMESTAMP_FIELDS: dict[DeliveryStatus, str] = {
    DeliveryStatus.SENT: "sent_at",
    DeliveryStatus.DELIVERED: "delivered_at",
    DeliveryStatus.OPENED: "opened_at",
    DeliveryStatus.CLICKED: "clicked_at",
    DeliveryStatus.FAILED: "failed_at",
    DeliveryStatus.BOUNCED: "bounced_at",
}


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TransitionResult:
    outcome: TransitionOutcome
    record: DeliveryRecord | None = None


def classify_transition(current: DeliveryStatus, target: DeliveryStatus) -> TransitionOutcome:
    """Decide whether moving from `current` to `target` is allowed."""
    if current == target:
        return TransitionOutcome.DUPLICATE
    if current in FAILURE_STATES:
        return TransitionOutcome.REJECTED
    if target in FAILURE_STATES:
        return TransitionOutcome.APPLIED if current in FAILABLE_FROM else TransitionOutcome.REJECTED
    if FORWARD_RANK[target] > FORWARD_RANK[current]:
        return TransitionOutcome.APPLIED
    return TransitionOutcome.REJECTED


class DeliveryTracker:
    """Owns delivery records and every change to their status."""

    def __init__(self, store: DeliveryStore, max_retries: int = 5) -> None:
        """Initialize tracker.

        Args:
            store: Delivery persistence
            max_retries: Compare-and-set attempts before giving up
        """
        self._store = store
        self._max_retries = max_retries

    @property
    def store(self) -> DeliveryStore:
        return self._store

    async def create_pending(self, record: DeliveryRecord) -> DeliveryRecord:
        """Persist a freshly dispatched record in PENDING."""
        if record.status != DeliveryStatus.PENDING:
            raise ValueError(f"New delivery records start PENDING, got {record.status.value}")
        await self._store.create(record)
        logger.debug("delivery_record_created", delivery_id=str(record.id), rule_id=record.rule_id)
        return record

    async def get(self, record_id: UUID) -> DeliveryRecord | None:
        return await self._store.get(record_id)

    async def apply(
        self,
        record_id: UUID,
        status: DeliveryStatus,
        *,
        at: datetime | None = None,
        error: str | None = None,
        provider_message_id: str | None = None,
    ) -> TransitionResult:
        """Apply a status transition to a record.

        Raises:
            ConflictError: If compare-and-set keeps losing to concurrent
                writers for `max_retries` attempts
        """
        at = at or utc_now()

        for attempt in range(self._max_retries):
            record = await self._store.get(record_id)
            if record is None:
                logger.warning("delivery_record_not_found", delivery_id=str(record_id))
                DELIVERY_TRANSITIONS.labels(status=status.value, outcome="not_found").inc()
                return TransitionResult(TransitionOutcome.NOT_FOUND)

            outcome = classify_transition(record.status, status)
            if outcome == TransitionOutcome.DUPLICATE:
                logger.debug(
                    "delivery_transition_duplicate",
                    delivery_id=str(record_id),
                    status=status.value,
                )
                DELIVERY_TRANSITIONS.labels(status=status.value, outcome=outcome.value).inc()
                return TransitionResult(outcome, record)

            if outcome == TransitionOutcome.REJECTED:
                logger.warning(
                    "delivery_transition_anomalous",
                    delivery_id=str(record_id),
                    current=record.status.value,
                    requested=status.value,
                )
                DELIVERY_TRANSITIONS.labels(status=status.value, outcome=outcome.value).inc()
                return TransitionResult(outcome, record)

            updated = self._advance(record, status, at, error, provider_message_id)
            if await self._store.compare_and_set(updated, record.version):
                logger.info(
                    "delivery_status_changed",
                    delivery_id=str(record_id),
                    previous=record.status.value,
                    status=status.value,
                )
                DELIVERY_TRANSITIONS.labels(status=status.value, outcome=outcome.value).inc()
                return TransitionResult(outcome, updated)

            logger.debug(
                "delivery_transition_conflict",
                delivery_id=str(record_id),
                attempt=attempt + 1,
            )

        raise ConflictError(
            f"Could not update delivery {record_id} after {self._max_retries} attempts"
        )

    async def apply_provider_status(
        self,
        channel: Channel,
        provider_message_id: str,
        status: DeliveryStatus,
        *,
        at: datetime | None = None,
        error: str | None = None,
    ) -> TransitionResult:
        """Apply a transition reported by a channel provider callback."""
        record = await self._store.get_by_provider_id(channel, provider_message_id)
        if record is None:
            logger.warning(
                "delivery_callback_unknown_message",
                channel=channel.value,
                provider_message_id=provider_message_id,
            )
            DELIVERY_TRANSITIONS.labels(status=status.value, outcome="not_found").inc()
            return TransitionResult(TransitionOutcome.NOT_FOUND)
        return await self.apply(record.id, status, at=at, error=error)

    async def analytics(self, query: DeliveryQuery | None = None) -> DeliveryAnalytics:
        """Aggregate rates over records matching `query`."""
        counts = await self._store.count_by_status(query or DeliveryQuery())
        return summarize(counts)

    def _advance(
        self,
        record: DeliveryRecord,
        status: DeliveryStatus,
        at: datetime,
        error: str | None,
        provider_message_id: str | None,
    ) -> DeliveryRecord:
        updates: dict[str, Any] = {"status": status, "version": record.version + 1}

        field = TIMESTAMP_FIELDS[status]
        if getattr(record, field) is None:
            updates[field] = at

        if status in FAILURE_STATES:
            updates["error"] = error or record.error or f"Delivery {status.value.lower()}"

        if provider_message_id and record.provider_message_id is None:
            updates["provider_message_id"] = provider_message_id

        return record.model_copy(update=updates)
