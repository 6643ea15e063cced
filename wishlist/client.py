"""HTTP client for the assistant endpoint."""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from wishlist.schemas.assistant import ChatMessageIn
from wishlist.services.assistant.decoder import FrameDecoder
from wishlist.services.assistant.frames import SSE_MEDIA_TYPE, ErrorFrame, Frame
from wishlist.services.assistant.session import ConversationSession, DataChangedCallback

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/v1/assistant/chat"


class AssistantClient:
    """Streams assistant turns from a running API.

    ``stream_turn`` has the shape a ConversationSession expects from its
    frame source, so a session can be wired straight to a server.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the API.
            api_token: Bearer token of the signed-in user.
            client: Optional preconfigured httpx client (tests pass one with an ASGI transport).
            timeout: Read timeout. None waits as long as the stream stays open.
        """
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = {"Accept": SSE_MEDIA_TYPE}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=timeout))

    async def stream_turn(self, history: list[ChatMessageIn]) -> AsyncIterator[Frame]:
        """POST the history and yield frames as they arrive.

        HTTP failures are reported as a single error frame. A malformed frame
        raises FrameDecodeError from the decoder.
        """
        payload: dict[str, Any] = {"messages": [m.model_dump(mode="json") for m in history]}
        url = f"{self.base_url}{CHAT_PATH}"
        logger.debug("Opening assistant stream: %s (%d messages)", url, len(history))

        decoder = FrameDecoder()
        try:
            async with self.client.stream("POST", url, json=payload, headers=self.headers) as response:
                if response.status_code != httpx.codes.OK:
                    body = await response.aread()
                    logger.warning(
                        "Assistant request rejected: %s %s", response.status_code, body[:200]
                    )
                    yield ErrorFrame(detail=_error_detail(response.status_code))
                    return

                async for chunk in response.aiter_bytes():
                    for frame in decoder.feed(chunk):
                        yield frame
        except httpx.HTTPError as e:
            logger.warning("Assistant stream failed: %s", e)
            yield ErrorFrame(detail=f"Connection error: {e}")
            return

        for frame in decoder.close():
            yield frame

    def session(self, *, on_data_changed: DataChangedCallback | None = None) -> ConversationSession:
        """Create a conversation session backed by this client."""
        return ConversationSession(self.stream_turn, on_data_changed=on_data_changed)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "AssistantClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _error_detail(status_code: int) -> str:
    if status_code == httpx.codes.UNAUTHORIZED:
        return "Not authenticated"
    if status_code == httpx.codes.TOO_MANY_REQUESTS:
        return "Too many requests. Please wait a moment."
    return f"Request failed with status {status_code}"
