"""Build a dispatcher from configuration."""

from nudge.agent.channels.adapters import HttpChannelAdapter, InAppChannelAdapter
from nudge.agent.channels.dispatcher import ChannelDispatcher
from nudge.agent.models import Channel
from nudge.config.settings import Settings
from nudge.observability.logging import get_logger

logger = get_logger(__name__)


def build_dispatcher(
    settings: Settings,
    inbox: InAppChannelAdapter | None = None,
) -> ChannelDispatcher:
    """Register the in-app inbox plus every enabled HTTP relay."""
    dispatcher = ChannelDispatcher(timeout_seconds=settings.engine.dispatch_timeout_seconds)
    dispatcher.register_adapter(inbox or InAppChannelAdapter(settings.channels.inbox_size))

    transports = {
        Channel.PUSH: settings.channels.push,
        Channel.EMAIL: settings.channels.email,
        Channel.SMS: settings.channels.sms,
    }
    for channel, transport in transports.items():
        if not transport.enabled:
            continue
        if not transport.url:
            logger.warning("channel_enabled_without_url", channel=channel.value)
            continue
        dispatcher.register_adapter(
            HttpChannelAdapter(
                channel=channel,
                url=transport.url,
                auth_token=transport.auth_token,
                timeout_seconds=transport.timeout_seconds,
            )
        )
    return dispatcher
