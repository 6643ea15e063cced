"""Tests for the client-held ConversationSession state machine."""

import asyncio
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from wishlist.core.exceptions import FrameDecodeError, SessionBusyError
from wishlist.schemas.assistant import ChatMessageIn, ToolResult
from wishlist.services.assistant.frames import (
    ErrorFrame,
    FinishFrame,
    Frame,
    TextDeltaFrame,
    ToolCallFrame,
    ToolResultFrame,
)
from wishlist.services.assistant.prompts import EMPTY_TURN_FALLBACK, TRANSPORT_ERROR_MESSAGE
from wishlist.services.assistant.session import ConversationSession, SessionStatus


class ScriptedSource:
    """Frame source that replays fixed frames and records the history it was sent."""

    def __init__(self, *turns: list[Frame], error: Exception | None = None) -> None:
        self.turns = list(turns)
        self.error = error
        self.histories: list[list[ChatMessageIn]] = []

    async def __call__(self, history: list[ChatMessageIn]) -> AsyncIterator[Frame]:
        self.histories.append(history)
        frames = self.turns.pop(0) if self.turns else []
        for frame in frames:
            yield frame
        if self.error is not None:
            raise self.error


def _created(call_id: str = "call_1") -> list[Frame]:
    return [
        TextDeltaFrame(text="On it."),
        ToolCallFrame(call_id=call_id, tool_name="createItem", args={"title": "Dune"}),
        ToolResultFrame(
            call_id=call_id,
            tool_name="createItem",
            result=ToolResult.ok(message='Added "Dune" to your wishlist!', data={"itemId": "i1"}),
        ),
        FinishFrame(),
    ]


class TestSubmit:
    """Tests for ConversationSession.submit()."""

    async def test_successful_turn(self) -> None:
        source = ScriptedSource([TextDeltaFrame(text="Hi "), TextDeltaFrame(text="there"), FinishFrame()])
        session = ConversationSession(source)

        reply = await session.submit("  hello  ")

        assert reply is not None
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert session.messages[0].content == "hello"
        assert reply.content == "Hi there"
        assert reply.error is False
        assert session.status is SessionStatus.IDLE
        assert session.is_streaming is False

    async def test_empty_text_is_ignored(self) -> None:
        source = ScriptedSource()
        session = ConversationSession(source)

        assert await session.submit("   ") is None
        assert session.messages == ()
        assert source.histories == []

    async def test_uses_draft_input_and_clears_it(self) -> None:
        source = ScriptedSource([TextDeltaFrame(text="ok"), FinishFrame()])
        session = ConversationSession(source)
        session.input = "list my movies"

        await session.submit()

        assert session.input == ""
        assert source.histories[0] == [ChatMessageIn(role="user", content="list my movies")]

    async def test_history_carries_previous_turns(self) -> None:
        source = ScriptedSource(
            [TextDeltaFrame(text="first"), FinishFrame()],
            [TextDeltaFrame(text="second"), FinishFrame()],
        )
        session = ConversationSession(source)

        await session.submit("one")
        await session.submit("two")

        assert [(m.role, m.content) for m in source.histories[1]] == [
            ("user", "one"),
            ("assistant", "first"),
            ("user", "two"),
        ]

    async def test_tool_result_merged_with_indicator(self) -> None:
        session = ConversationSession(ScriptedSource(_created()))

        reply = await session.submit("add dune")

        assert reply is not None
        assert reply.content == 'On it.\n✓ Added "Dune" to your wishlist!'
        (invocation,) = reply.tool_invocations
        assert invocation.call_id == "call_1"
        assert invocation.result is not None
        assert invocation.result.data == {"itemId": "i1"}

    async def test_failed_tool_result_marked(self) -> None:
        frames: list[Frame] = [
            ToolCallFrame(call_id="c", tool_name="toggleItem", args={"identifier": "x"}),
            ToolResultFrame(
                call_id="c",
                tool_name="toggleItem",
                result=ToolResult.fail(message="I couldn't find that.", error='No match found for "x"'),
            ),
            FinishFrame(),
        ]
        session = ConversationSession(ScriptedSource(frames))

        reply = await session.submit("done with x")

        assert reply is not None
        assert reply.content == "✗ I couldn't find that."
        assert reply.error is False

    async def test_empty_finished_turn_gets_fallback(self) -> None:
        session = ConversationSession(ScriptedSource([FinishFrame()]))

        reply = await session.submit("hmm")

        assert reply is not None
        assert reply.content == EMPTY_TURN_FALLBACK


class TestBusyGuard:
    """A second submission while a turn is in flight is rejected."""

    async def test_rejects_submit_while_streaming(self) -> None:
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_source(_history: list[ChatMessageIn]) -> AsyncIterator[Frame]:
            yield TextDeltaFrame(text="thinking")
            started.set()
            await release.wait()
            yield FinishFrame()

        session = ConversationSession(slow_source)
        turn = asyncio.create_task(session.submit("first"))
        await started.wait()

        assert session.is_streaming is True
        with pytest.raises(SessionBusyError):
            await session.submit("second")

        release.set()
        await turn
        assert [m.content for m in session.messages if m.role == "user"] == ["first"]
        assert session.status is SessionStatus.IDLE


class TestTransportErrors:
    """Every failed turn ends in exactly one error message with the draft restored."""

    async def test_error_frame_before_any_text(self) -> None:
        session = ConversationSession(ScriptedSource([ErrorFrame(detail="provider down")]))

        reply = await session.submit("add dune")

        assert reply is not None
        assert reply.error is True
        assert reply.content == TRANSPORT_ERROR_MESSAGE
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert session.input == "add dune"
        assert session.status is SessionStatus.IDLE

    async def test_error_after_partial_text_reuses_message(self) -> None:
        frames: list[Frame] = [TextDeltaFrame(text="Let me"), ErrorFrame(detail="reset")]
        session = ConversationSession(ScriptedSource(frames))

        reply = await session.submit("add dune")

        assert reply is not None
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert reply.error is True
        assert reply.content.startswith("Let me")
        assert reply.content.endswith(TRANSPORT_ERROR_MESSAGE)

    async def test_stream_without_finish(self) -> None:
        session = ConversationSession(ScriptedSource([TextDeltaFrame(text="cut off")]))

        reply = await session.submit("hello")

        assert reply is not None
        assert reply.error is True
        assert session.input == "hello"

    async def test_decode_error(self) -> None:
        source = ScriptedSource([TextDeltaFrame(text="x")], error=FrameDecodeError("bad frame"))
        session = ConversationSession(source)

        reply = await session.submit("hello")

        assert reply is not None
        assert reply.error is True
        assert len([m for m in session.messages if m.role == "assistant"]) == 1

    async def test_unexpected_exception_is_contained(self) -> None:
        session = ConversationSession(ScriptedSource([], error=RuntimeError("boom")))

        reply = await session.submit("hello")

        assert reply is not None
        assert reply.error is True
        assert session.status is SessionStatus.IDLE

    async def test_error_messages_left_out_of_next_history(self) -> None:
        source = ScriptedSource([ErrorFrame(detail="down")], [TextDeltaFrame(text="ok"), FinishFrame()])
        session = ConversationSession(source)

        await session.submit("first")
        await session.submit()

        assert [m.role for m in source.histories[1]] == ["user", "user"]


class TestClear:
    """Tests for ConversationSession.clear()."""

    async def test_clear_resets_everything(self) -> None:
        session = ConversationSession(ScriptedSource([TextDeltaFrame(text="hi"), FinishFrame()]))
        await session.submit("hello")
        session.input = "draft"

        session.clear()

        assert session.messages == ()
        assert session.input == ""
        assert session.status is SessionStatus.IDLE

    async def test_clear_mid_turn_stops_consuming(self) -> None:
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_source(_history: list[ChatMessageIn]) -> AsyncIterator[Frame]:
            yield TextDeltaFrame(text="partial")
            started.set()
            await release.wait()
            yield TextDeltaFrame(text=" more")
            yield FinishFrame()

        session = ConversationSession(slow_source)
        turn = asyncio.create_task(session.submit("hello"))
        await started.wait()

        session.clear()
        release.set()

        assert await turn is None
        assert session.messages == ()
        assert session.status is SessionStatus.IDLE


class TestDataChanged:
    """Tests for the on_data_changed notification."""

    async def test_fires_after_successful_mutation(self) -> None:
        callback = AsyncMock()
        session = ConversationSession(ScriptedSource(_created()), on_data_changed=callback)

        await session.submit("add dune")

        callback.assert_awaited_once()

    async def test_sync_callback_supported(self) -> None:
        callback = MagicMock(return_value=None)
        session = ConversationSession(ScriptedSource(_created()), on_data_changed=callback)

        await session.submit("add dune")

        callback.assert_called_once()

    async def test_not_fired_for_queries_or_failures(self) -> None:
        frames: list[Frame] = [
            ToolCallFrame(call_id="q", tool_name="queryItems", args={}),
            ToolResultFrame(
                call_id="q",
                tool_name="queryItems",
                result=ToolResult.ok(message="You have 0 todo items.", data={"items": [], "count": 0}),
            ),
            ToolCallFrame(call_id="t", tool_name="toggleItem", args={"identifier": "x"}),
            ToolResultFrame(
                call_id="t",
                tool_name="toggleItem",
                result=ToolResult.fail(message="No luck.", error="No items found"),
            ),
            FinishFrame(),
        ]
        callback = AsyncMock()
        session = ConversationSession(ScriptedSource(frames), on_data_changed=callback)

        await session.submit("what do I have?")

        callback.assert_not_awaited()

    async def test_callback_failure_does_not_break_turn(self) -> None:
        callback = AsyncMock(side_effect=RuntimeError("ui gone"))
        session = ConversationSession(ScriptedSource(_created()), on_data_changed=callback)

        reply = await session.submit("add dune")

        assert reply is not None
        assert reply.error is False
