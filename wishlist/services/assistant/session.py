"""Client-held conversation state for the assistant surface.

A session owns the message log, the draft input and the turn status. It is
created when the assistant opens and thrown away (or cleared) when it
closes; nothing here is persisted.

Status moves idle -> sending -> streaming -> idle. Every submitted turn ends
with exactly one assistant message, including turns whose stream fails.
"""

import enum
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from wishlist.core.exceptions import SessionBusyError, TransportError
from wishlist.schemas.assistant import ChatMessageIn, Message, ToolInvocation
from wishlist.services.assistant.frames import (
    ErrorFrame,
    FinishFrame,
    Frame,
    TextDeltaFrame,
    ToolCallFrame,
    ToolResultFrame,
)
from wishlist.services.assistant.prompts import EMPTY_TURN_FALLBACK, TRANSPORT_ERROR_MESSAGE

logger = logging.getLogger(__name__)

FrameSource = Callable[[list[ChatMessageIn]], AsyncIterator[Frame]]
DataChangedCallback = Callable[[], Awaitable[None] | None]

# Tools whose success means the stored wishlist changed
MUTATING_TOOLS = frozenset({"createItem", "toggleItem"})

SUCCESS_MARK = "✓"
FAILURE_MARK = "✗"


class SessionStatus(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


class ConversationSession:
    """Message log plus the single-flight submission guard."""

    def __init__(
        self,
        source: FrameSource,
        *,
        on_data_changed: DataChangedCallback | None = None,
    ) -> None:
        self._source = source
        self._on_data_changed = on_data_changed
        self._messages: list[Message] = []
        self._epoch = 0
        self.status = SessionStatus.IDLE
        self.input = ""

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_streaming(self) -> bool:
        return self.status is not SessionStatus.IDLE

    def clear(self) -> None:
        """Forget the conversation. A turn still in flight stops consuming frames."""
        self._epoch += 1
        self._messages = []
        self.input = ""
        self.status = SessionStatus.IDLE

    async def submit(self, text: str | None = None) -> Message | None:
        """Send one user turn and consume its frames.

        Args:
            text: Text to send. Defaults to the current draft input.

        Returns:
            The assistant message that closed the turn, or None when the text
            was empty or the session was cleared mid-turn.

        Raises:
            SessionBusyError: If a turn is already in flight.
        """
        draft = self.input if text is None else text
        content = draft.strip()
        if not content:
            return None
        if self.status is not SessionStatus.IDLE:
            raise SessionBusyError("A message is already being processed")

        self._messages.append(Message(role="user", content=content))
        self.input = ""
        self.status = SessionStatus.SENDING
        epoch = self._epoch
        history = [m.to_history() for m in self._messages if not m.error]

        assistant: Message | None = None
        finished = False
        stream = self._source(history)
        try:
            async for frame in stream:
                if epoch != self._epoch:
                    return None
                if assistant is None:
                    assistant = Message(role="assistant")
                    self._messages.append(assistant)
                    self.status = SessionStatus.STREAMING

                if isinstance(frame, ErrorFrame):
                    logger.warning("Assistant turn failed: %s", frame.detail)
                    return self._fail_turn(assistant, draft)
                if isinstance(frame, FinishFrame):
                    finished = True
                    break
                await self._apply(assistant, frame)
        except TransportError as e:
            if epoch != self._epoch:
                return None
            logger.warning("Assistant stream broke: %s", e)
            return self._fail_turn(assistant, draft)
        except Exception:
            if epoch != self._epoch:
                return None
            logger.exception("Unexpected failure while consuming assistant stream")
            return self._fail_turn(assistant, draft)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        if epoch != self._epoch:
            return None
        if not finished or assistant is None:
            logger.warning("Assistant stream ended without a finish frame")
            return self._fail_turn(assistant, draft)

        if not assistant.content and not assistant.tool_invocations:
            assistant.content = EMPTY_TURN_FALLBACK
        self.status = SessionStatus.IDLE
        return assistant

    async def _apply(self, assistant: Message, frame: Frame) -> None:
        if isinstance(frame, TextDeltaFrame):
            assistant.content += frame.text

        elif isinstance(frame, ToolCallFrame):
            assistant.tool_invocations.append(
                ToolInvocation(call_id=frame.call_id, tool_name=frame.tool_name, args=frame.args)
            )

        elif isinstance(frame, ToolResultFrame):
            invocation = next(
                (t for t in assistant.tool_invocations if t.call_id == frame.call_id),
                None,
            )
            if invocation is None:
                invocation = ToolInvocation(call_id=frame.call_id, tool_name=frame.tool_name)
                assistant.tool_invocations.append(invocation)
            invocation.result = frame.result

            mark = SUCCESS_MARK if frame.result.success else FAILURE_MARK
            if assistant.content and not assistant.content.endswith("\n"):
                assistant.content += "\n"
            assistant.content += f"{mark} {frame.result.message}"

            if frame.result.success and invocation.tool_name in MUTATING_TOOLS:
                await self._notify_data_changed()

    async def _notify_data_changed(self) -> None:
        if self._on_data_changed is None:
            return
        try:
            outcome = self._on_data_changed()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("on_data_changed callback failed")

    def _fail_turn(self, assistant: Message | None, draft: str) -> Message:
        """Close the turn with one error-flagged assistant message and restore the draft."""
        if assistant is None:
            assistant = Message(role="assistant")
            self._messages.append(assistant)

        if assistant.content:
            assistant.content += f"\n\n{TRANSPORT_ERROR_MESSAGE}"
        else:
            assistant.content = TRANSPORT_ERROR_MESSAGE
        assistant.error = True

        self.input = draft
        self.status = SessionStatus.IDLE
        return assistant
