"""Tests for ChannelDispatcher."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from nudge.agent.channels import ChannelDispatcher, InAppChannelAdapter
from nudge.agent.errors import TransportFailure
from nudge.agent.models import Channel, RenderedContent


class StubAdapter:
    """Adapter whose send behaviour is controlled by the test."""

    def __init__(self, channel: Channel, send: AsyncMock | None = None) -> None:
        self._channel = channel
        self.send = send or AsyncMock(return_value="msg-1")
        self.aclose = AsyncMock()

    @property
    def channel(self) -> Channel:
        return self._channel


@pytest.fixture
def content() -> RenderedContent:
    return RenderedContent(title="Hi", body="Come back", action_url="/home", locale="en")


@pytest.fixture
def dispatcher() -> ChannelDispatcher:
    return ChannelDispatcher(timeout_seconds=0.05)


class TestChannelDispatcher:
    @pytest.mark.asyncio
    async def test_accepted_send_returns_provider_id(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        adapter = StubAdapter(Channel.PUSH)
        dispatcher.register_adapter(adapter)

        handle = await dispatcher.send(Channel.PUSH, "user-1", content)

        assert handle.accepted
        assert handle.provider_message_id == "msg-1"
        assert handle.error is None
        adapter.send.assert_awaited_once_with("user-1", "Hi", "Come back", "/home")

    @pytest.mark.asyncio
    async def test_unregistered_channel_fails(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        handle = await dispatcher.send(Channel.SMS, "user-1", content)

        assert not handle.accepted
        assert "SMS" in handle.error

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_failed_handle(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        dispatcher.register_adapter(
            StubAdapter(Channel.EMAIL, AsyncMock(side_effect=TransportFailure("relay said no")))
        )

        handle = await dispatcher.send(Channel.EMAIL, "user-1", content)

        assert not handle.accepted
        assert handle.error == "relay said no"

    @pytest.mark.asyncio
    async def test_unexpected_adapter_error_becomes_failed_handle(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        dispatcher.register_adapter(
            StubAdapter(Channel.PUSH, AsyncMock(side_effect=RuntimeError("boom")))
        )

        handle = await dispatcher.send(Channel.PUSH, "user-1", content)

        assert not handle.accepted
        assert handle.error == "boom"

    @pytest.mark.asyncio
    async def test_slow_adapter_times_out(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        async def hang(*args: object) -> str:
            await asyncio.sleep(10)
            return "never"

        dispatcher.register_adapter(StubAdapter(Channel.PUSH, AsyncMock(side_effect=hang)))

        handle = await dispatcher.send(Channel.PUSH, "user-1", content)

        assert not handle.accepted
        assert "timed out" in handle.error

    @pytest.mark.asyncio
    async def test_one_slow_channel_does_not_hold_up_another(
        self, dispatcher: ChannelDispatcher, content: RenderedContent
    ) -> None:
        async def hang(*args: object) -> str:
            await asyncio.sleep(10)
            return "never"

        dispatcher.register_adapter(StubAdapter(Channel.PUSH, AsyncMock(side_effect=hang)))
        dispatcher.register_adapter(InAppChannelAdapter())

        slow, fast = await asyncio.gather(
            dispatcher.send(Channel.PUSH, "user-1", content),
            dispatcher.send(Channel.IN_APP, "user-1", content),
        )

        assert not slow.accepted
        assert fast.accepted

    def test_registry(self, dispatcher: ChannelDispatcher) -> None:
        adapter = StubAdapter(Channel.PUSH)
        dispatcher.register_adapter(adapter)

        assert dispatcher.channels == [Channel.PUSH]
        assert dispatcher.adapter(Channel.PUSH) is adapter
        assert dispatcher.adapter(Channel.EMAIL) is None

    @pytest.mark.asyncio
    async def test_close_releases_adapters(self, dispatcher: ChannelDispatcher) -> None:
        adapter = StubAdapter(Channel.PUSH)
        dispatcher.register_adapter(adapter)
        dispatcher.register_adapter(InAppChannelAdapter())

        await dispatcher.close()

        adapter.aclose.assert_awaited_once()
