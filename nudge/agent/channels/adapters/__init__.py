"""Concrete channel adapters."""

from nudge.agent.channels.adapters.http import HttpChannelAdapter
from nudge.agent.channels.adapters.inapp import InAppChannelAdapter, InboxMessage

__all__ = ["HttpChannelAdapter", "InAppChannelAdapter", "InboxMessage"]
