"""In-app inbox channel adapter."""

from collections import deque
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from nudge.agent.models import Channel, utc_now
from nudge.observability.logging import get_logger

logger = get_logger(__name__)


class InboxMessage(BaseModel):
    """A message waiting in a recipient's in-app inbox."""

    id: str = Field(default_factory=lambda: f"inapp_{uuid4().hex}")
    recipient_id: str
    title: str
    body: str
    action_url: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class InAppChannelAdapter:
    """Delivers to an in-process inbox the app polls.

    Hand-off cannot fail; the generated inbox id is the provider id. Each
    recipient keeps at most `max_messages`; older messages are dropped.
    """

    def __init__(self, max_messages: int = 50) -> None:
        self._max_messages = max_messages
        self._inbox: dict[str, deque[InboxMessage]] = {}

    @property
    def channel(self) -> Channel:
        return Channel.IN_APP

    async def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        action_url: str | None,
    ) -> str | None:
        message = InboxMessage(
            recipient_id=recipient_id,
            title=title,
            body=body,
            action_url=action_url,
        )
        messages = self._inbox.setdefault(recipient_id, deque(maxlen=self._max_messages))
        messages.append(message)
        logger.debug("inbox_message_stored", message_id=message.id)
        return message.id

    def inbox(self, recipient_id: str) -> list[InboxMessage]:
        """Messages for a recipient, oldest first."""
        return list(self._inbox.get(recipient_id, ()))
