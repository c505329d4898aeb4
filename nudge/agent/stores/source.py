"""RuleSource abstract interface."""

from abc import ABC, abstractmethod
from typing import Any


class RuleSource(ABC):
    """Read-only access to authored rules and templates.

    Entries are returned as raw storage mappings (camelCase keys) so the
    catalog can validate and reject them one at a time.

    Implementations raise nudge.db.StoreError when the backing store is
    unreachable.
    """

    @abstractmethod
    async def list_rules(self) -> list[dict[str, Any]]:
        """List rule entries, active or not."""
        pass

    @abstractmethod
    async def list_templates(self) -> list[dict[str, Any]]:
        """List template entries, active or not."""
        pass

    async def load(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Rule and template entries taken from one version of the source."""
        return await self.list_rules(), await self.list_templates()
