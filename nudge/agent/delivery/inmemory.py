"""In-memory implementation of DeliveryStore."""

import asyncio
from collections import Counter
from datetime import UTC
from uuid import UUID

from nudge.agent.delivery.store import DeliveryQuery, DeliveryStore, StatusCount
from nudge.agent.models import Channel, DeliveryRecord
from nudge.db.errors import ConflictError


class InMemoryDeliveryStore(DeliveryStore):
    """In-memory DeliveryStore for testing and development.

    Uses dict storage with linear scans for queries. Records are copied on
    the way in and out, so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._records: dict[UUID, DeliveryRecord] = {}
        self._by_provider_id: dict[tuple[Channel, str], UUID] = {}
        self._lock = asyncio.Lock()

    async def create(self, record: DeliveryRecord) -> None:
        async with self._lock:
            if record.id in self._records:
                raise ConflictError(f"Delivery record {record.id} already exists")
            self._put(record)

    async def get(self, record_id: UUID) -> DeliveryRecord | None:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def get_by_provider_id(
        self,
        channel: Channel,
        provider_message_id: str,
    ) -> DeliveryRecord | None:
        record_id = self._by_provider_id.get((channel, provider_message_id))
        if record_id is None:
            return None
        return await self.get(record_id)

    async def compare_and_set(self, record: DeliveryRecord, expected_version: int) -> bool:
        async with self._lock:
            current = self._records.get(record.id)
            if current is None or current.version != expected_version:
                return False
            self._put(record)
            return True

    async def query(
        self,
        query: DeliveryQuery,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DeliveryRecord]:
        results = [r for r in self._records.values() if query.matches(r)]
        results.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in results[offset : offset + limit]]

    async def count(self, query: DeliveryQuery) -> int:
        return sum(1 for r in self._records.values() if query.matches(r))

    async def count_by_status(self, query: DeliveryQuery) -> list[StatusCount]:
        groups: Counter = Counter(
            (r.created_at.astimezone(UTC).date(), r.channel, r.agent_type, r.status)
            for r in self._records.values()
            if query.matches(r)
        )
        return [
            StatusCount(day=day, channel=channel, agent_type=agent_type, status=status, count=n)
            for (day, channel, agent_type, status), n in sorted(
                groups.items(),
                key=lambda item: (item[0][0], item[0][1].value, item[0][2].value, item[0][3].value),
            )
        ]

    def _put(self, record: DeliveryRecord) -> None:
        self._records[record.id] = record.model_copy(deep=True)
        if record.provider_message_id:
            self._by_provider_id[(record.channel, record.provider_message_id)] = record.id
