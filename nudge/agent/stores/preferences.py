"""PreferenceStore abstract interface."""

from abc import ABC, abstractmethod

from nudge.agent.models import RecipientPreferences


class PreferenceStore(ABC):
    """Per-recipient notification preferences."""

    @abstractmethod
    async def get(self, recipient_id: str) -> RecipientPreferences | None:
        """Get preferences; None means platform defaults apply."""
        pass

    @abstractmethod
    async def save(self, preferences: RecipientPreferences) -> None:
        """Create or replace a recipient's preferences."""
        pass
