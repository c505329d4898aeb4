"""HTTP relay channel adapter.

Hands messages to a provider relay (push gateway, email relay, SMS
gateway) with a JSON POST:

    {"channel": "PUSH", "recipientId": "...", "title": "...",
     "body": "...", "actionUrl": "..."}

A 2xx response is acceptance; the relay's `messageId` (or `id`) field, if
present, becomes the provider message id used by status callbacks.
"""

import httpx

from nudge.agent.errors import TransportFailure
from nudge.agent.models import Channel
from nudge.observability.logging import get_logger

logger = get_logger(__name__)


class HttpChannelAdapter:
    """Channel adapter backed by an HTTP relay endpoint."""

    def __init__(
        self,
        channel: Channel,
        url: str,
        auth_token: str | None = None,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize HTTP adapter.

        Args:
            channel: Channel this relay serves
            url: Relay endpoint
            auth_token: Bearer token sent with every request
            timeout_seconds: HTTP timeout per request
            client: Shared client; one is created lazily when omitted
        """
        self._channel = channel
        self._url = url
        self._auth_token = auth_token
        self._timeout_seconds = timeout_seconds
        self._client = client

    @property
    def channel(self) -> Channel:
        return self._channel

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        action_url: str | None,
    ) -> str | None:
        headers = {"Content-Type": "application/json", "User-Agent": "Nudge-Dispatcher/1.0"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        payload = {
            "channel": self._channel.value,
            "recipientId": recipient_id,
            "title": title,
            "body": body,
            "actionUrl": action_url,
        }

        client = await self._ensure_client()
        try:
            response = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransportFailure(
                f"{self._channel.value} relay unreachable: {type(e).__name__}",
                self._channel.value,
            ) from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                "relay_rejected_message",
                channel=self._channel.value,
                status_code=response.status_code,
                response_preview=response.text[:200],
            )
            raise TransportFailure(
                f"{self._channel.value} relay returned HTTP {response.status_code}",
                self._channel.value,
            )

        return self._message_id(response)

    def _message_id(self, response: httpx.Response) -> str | None:
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        message_id = data.get("messageId") or data.get("id")
        return str(message_id) if message_id is not None else None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
