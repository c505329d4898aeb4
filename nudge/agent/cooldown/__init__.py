"""Cooldown suppression stores."""

from nudge.agent.cooldown.inmemory import InMemoryCooldownStore
from nudge.agent.cooldown.redis import RedisCooldownStore
from nudge.agent.cooldown.store import CooldownScope, CooldownStore, cooldown_key

__all__ = [
    "CooldownScope",
    "CooldownStore",
    "InMemoryCooldownStore",
    "RedisCooldownStore",
    "cooldown_key",
]
