"""CooldownStore abstract interface and key scoping."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum

from nudge.agent.models import Rule


class CooldownScope(str, Enum):
    """Which fires share one cooldown record.

    - RULE: one record per (rule, recipient)
    - RULE_AND_AGENT_TYPE: as RULE, with the agent type folded into the key
    - AGENT_TYPE: all rules of an agent type share one record per recipient
    """

    RULE = "rule"
    RULE_AND_AGENT_TYPE = "rule_and_agent_type"
    AGENT_TYPE = "agent_type"


def cooldown_key(scope: CooldownScope, rule: Rule, recipient_id: str) -> str:
    """Build the cooldown record key for a rule fire."""
    if scope == CooldownScope.AGENT_TYPE:
        return f"agent:{rule.agent_type.value}:{recipient_id}"
    if scope == CooldownScope.RULE_AND_AGENT_TYPE:
        return f"agent:{rule.agent_type.value}:rule:{rule.id}:{recipient_id}"
    return f"rule:{rule.id}:{recipient_id}"


class CooldownStore(ABC):
    """Last-fired timestamps with an atomic acquire.

    `try_acquire` is one conditional write: it succeeds, and stamps
    `now`, when there is no record or the record is at least
    `cooldown_hours` old; otherwise it fails and changes nothing. With no
    cooldown it always succeeds and still records the fire.

    The same backing store keeps the per-day counters behind daily caps:
    `try_reserve` is an atomic check-and-increment against a limit.

    Implementations raise CooldownStoreUnavailableError when the backing
    store cannot be reached.
    """

    @abstractmethod
    async def try_acquire(
        self,
        key: str,
        cooldown_hours: float | None,
        now: datetime | None = None,
    ) -> bool:
        """Atomically check the cooldown and stamp the fire."""
        pass

    @abstractmethod
    async def last_fired(self, key: str) -> datetime | None:
        """When the key last acquired, if ever."""
        pass

    @abstractmethod
    async def try_reserve(
        self,
        key: str,
        limit: int,
        expires_at: datetime,
        now: datetime | None = None,
    ) -> bool:
        """Atomically take one of `limit` slots counted under `key`.

        The counter lapses at `expires_at`. Fails, changing nothing, when
        all slots are taken.
        """
        pass

    @abstractmethod
    async def release(self, key: str) -> None:
        """Give back one slot taken with `try_reserve`."""
        pass
