"""Delivery channels: adapter protocol, dispatcher and adapters."""

from nudge.agent.channels.adapter import ChannelAdapter
from nudge.agent.channels.adapters import HttpChannelAdapter, InAppChannelAdapter, InboxMessage
from nudge.agent.channels.dispatcher import ChannelDispatcher, DeliveryHandle
from nudge.agent.channels.factory import build_dispatcher

__all__ = [
    "ChannelAdapter",
    "ChannelDispatcher",
    "DeliveryHandle",
    "HttpChannelAdapter",
    "InAppChannelAdapter",
    "InboxMessage",
    "build_dispatcher",
]
