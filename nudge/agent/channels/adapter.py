"""Channel adapter protocol.

Defines the interface that all channel adapters must implement.
"""

from abc import abstractmethod
from typing import Protocol

from nudge.agent.models import Channel


class ChannelAdapter(Protocol):
    """Protocol for delivery channel integrations.

    Each channel (push, email, in-app, SMS) implements this interface.
    `send` returns once the transport has accepted the message, not once
    it is delivered.
    """

    @property
    @abstractmethod
    def channel(self) -> Channel:
        """Channel this adapter serves."""
        ...

    @abstractmethod
    async def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        action_url: str | None,
    ) -> str | None:
        """Hand a message to the transport.

        Returns:
            The transport's message id, if it assigns one

        Raises:
            TransportFailure: If the transport did not accept the message
        """
        ...
