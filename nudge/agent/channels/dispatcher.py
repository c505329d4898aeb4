"""Channel dispatcher: one send seam over all channel adapters."""

import asyncio
import time
from dataclasses import dataclass

from nudge.agent.channels.adapter import ChannelAdapter
from nudge.agent.errors import TransportFailure
from nudge.agent.models import Channel, RenderedContent
from nudge.observability.logging import get_logger
from nudge.observability.metrics import DISPATCH_LATENCY, DISPATCH_OUTCOMES

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeliveryHandle:
    """Provisional result of handing a message to a channel."""

    channel: Channel
    accepted: bool
    provider_message_id: str | None = None
    error: str | None = None


class ChannelDispatcher:
    """Routes rendered messages to the adapter registered for a channel.

    Every send is bounded by its own timeout. Failures never raise; they
    come back as a handle with `accepted=False` and an error message.
    """

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        """Initialize the dispatcher with an empty adapter registry."""
        self._adapters: dict[Channel, ChannelAdapter] = {}
        self._timeout_seconds = timeout_seconds

    def register_adapter(self, adapter: ChannelAdapter) -> None:
        """Register an adapter under the channel it serves."""
        self._adapters[adapter.channel] = adapter
        logger.info("channel_adapter_registered", channel=adapter.channel.value)

    def adapter(self, channel: Channel) -> ChannelAdapter | None:
        return self._adapters.get(channel)

    @property
    def channels(self) -> list[Channel]:
        return list(self._adapters)

    async def send(
        self,
        channel: Channel,
        recipient_id: str,
        content: RenderedContent,
    ) -> DeliveryHandle:
        """Send rendered content to a recipient over `channel`."""
        adapter = self._adapters.get(channel)
        if adapter is None:
            logger.error("channel_adapter_not_found", channel=channel.value)
            DISPATCH_OUTCOMES.labels(channel=channel.value, outcome="no_adapter").inc()
            return DeliveryHandle(
                channel=channel,
                accepted=False,
                error=f"No adapter registered for channel {channel.value}",
            )

        start_time = time.perf_counter()
        try:
            provider_message_id = await asyncio.wait_for(
                adapter.send(recipient_id, content.title, content.body, content.action_url),
                timeout=self._timeout_seconds,
            )
        except TimeoutError:
            return self._failed(
                channel,
                "timeout",
                f"Channel hand-off timed out after {self._timeout_seconds}s",
            )
        except TransportFailure as e:
            return self._failed(channel, "transport_failure", e.message)
        except Exception as e:
            logger.exception("channel_adapter_error", channel=channel.value)
            return self._failed(channel, "adapter_error", str(e) or type(e).__name__)
        finally:
            DISPATCH_LATENCY.labels(channel=channel.value).observe(
                time.perf_counter() - start_time
            )

        DISPATCH_OUTCOMES.labels(channel=channel.value, outcome="accepted").inc()
        logger.info(
            "message_handed_off",
            channel=channel.value,
            provider_message_id=provider_message_id,
        )
        return DeliveryHandle(
            channel=channel,
            accepted=True,
            provider_message_id=provider_message_id,
        )

    async def close(self) -> None:
        """Release adapter resources such as HTTP clients."""
        for adapter in self._adapters.values():
            aclose = getattr(adapter, "aclose", None)
            if aclose is not None:
                await aclose()

    def _failed(self, channel: Channel, outcome: str, error: str) -> DeliveryHandle:
        DISPATCH_OUTCOMES.labels(channel=channel.value, outcome=outcome).inc()
        logger.warning("channel_hand_off_failed", channel=channel.value, outcome=outcome, error=error)
        return DeliveryHandle(channel=channel, accepted=False, error=error)
