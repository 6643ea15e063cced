"""Single-turn intent dispatch: stream the model, run its tool calls, emit frames."""

import logging
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from wishlist.core.config import Settings, get_settings
from wishlist.core.database import Database
from wishlist.core.exceptions import StoreError
from wishlist.schemas.assistant import ChatMessageIn, ToolResult
from wishlist.schemas.category import CategoryResponse
from wishlist.services.assistant.frames import (
    ErrorFrame,
    FinishFrame,
    Frame,
    TextDeltaFrame,
    ToolCallFrame,
    ToolResultFrame,
    encode_frame,
)
from wishlist.services.assistant.prompts import SYSTEM_PROMPT
from wishlist.services.category_directory import CategoryDirectory, format_categories_for_prompt
from wishlist.services.tools.wishlist_tools import WishlistTools, create_wishlist_tools

logger = logging.getLogger(__name__)

MODEL_ERROR_DETAIL = "The assistant is temporarily unavailable. Please try again."


def build_model_messages(
    history: list[ChatMessageIn],
    categories: list[CategoryResponse],
    user_id: UUID,
    *,
    max_messages: int | None = None,
) -> list[BaseMessage]:
    """System instructions followed by the conversation, role and content only.

    System-role entries from the client are dropped; only the server writes
    instructions. With ``max_messages`` only the most recent entries are
    forwarded, so a long-running conversation stays within the model's context.
    """
    system = SYSTEM_PROMPT.format(
        categories_section=format_categories_for_prompt(categories),
        user_id=user_id,
    )
    if max_messages is not None and len(history) > max_messages:
        logger.debug("Windowing history: %d -> %d entries", len(history), max_messages)
        history = history[-max_messages:]

    messages: list[BaseMessage] = [SystemMessage(content=system)]
    for entry in history:
        if entry.role == "user":
            messages.append(HumanMessage(content=entry.content))
        elif entry.role == "assistant":
            messages.append(AIMessage(content=entry.content))
        else:
            logger.debug("Ignoring client-supplied system message")
    return messages


def _chunk_text(chunk: AIMessageChunk) -> str:
    content = chunk.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class IntentDispatcher:
    """Runs one assistant turn against the chat model.

    The model sees the whole history plus the three tool schemas. Text is
    forwarded as it streams; tool calls are executed after the model pass
    completes, one at a time, in the order the model issued them.
    """

    def __init__(
        self,
        tools: WishlistTools,
        categories: list[CategoryResponse],
        *,
        settings: Settings | None = None,
        llm: Any = None,
    ) -> None:
        self.tools = tools
        self.categories = categories
        self.settings = settings or get_settings()
        self._llm = llm

    def _get_llm(self) -> Any:
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.settings.chat_model,
                api_key=self.settings.openai_api_key,
                temperature=self.settings.chat_temperature,
                max_tokens=self.settings.max_response_tokens,
            )
        return self._llm

    async def stream(self, history: list[ChatMessageIn]) -> AsyncIterator[Frame]:
        """Yield frames for one turn. Never raises; failures become one error frame."""
        messages = build_model_messages(
            history,
            self.categories,
            self.tools.user_id,
            max_messages=self.settings.max_history_messages,
        )

        gathered: AIMessageChunk | None = None
        try:
            bound_llm = self._get_llm().bind_tools(self.tools.tool_definitions())
            async for chunk in bound_llm.astream(messages):
                gathered = chunk if gathered is None else gathered + chunk
                text = _chunk_text(chunk)
                if text:
                    yield TextDeltaFrame(text=text)
        except Exception:
            logger.exception("Model stream failed for user %s", self.tools.user_id)
            yield ErrorFrame(detail=MODEL_ERROR_DETAIL)
            return

        if gathered is None:
            logger.error("Model stream ended without output for user %s", self.tools.user_id)
            yield ErrorFrame(detail=MODEL_ERROR_DETAIL)
            return

        tool_calls = list(gathered.tool_calls)
        if tool_calls or gathered.invalid_tool_calls:
            logger.info(
                "Model issued tool calls: %s",
                [tc["name"] for tc in tool_calls] + [tc.get("name") for tc in gathered.invalid_tool_calls],
            )

        for position, tc in enumerate(tool_calls):
            call_id = tc.get("id") or f"call_{position}"
            yield ToolCallFrame(call_id=call_id, tool_name=tc["name"], args=tc["args"])
            result = await self._execute(tc["name"], tc["args"])
            yield ToolResultFrame(call_id=call_id, tool_name=tc["name"], result=result)

        # Calls whose arguments were not valid JSON never reach a tool
        for position, itc in enumerate(gathered.invalid_tool_calls, start=len(tool_calls)):
            call_id = itc.get("id") or f"call_{position}"
            tool_name = itc.get("name") or "unknown"
            yield ToolCallFrame(call_id=call_id, tool_name=tool_name, args={})
            yield ToolResultFrame(
                call_id=call_id,
                tool_name=tool_name,
                result=ToolResult.fail(
                    message="Sorry, I couldn't understand that request. Please try rephrasing it.",
                    error=f"Invalid call to {tool_name}: {itc.get('error') or 'malformed arguments'}",
                ),
            )

        reason = gathered.response_metadata.get("finish_reason") or "stop"
        yield FinishFrame(reason=reason)

    async def _execute(self, tool_name: str, args: dict[str, Any]) -> ToolResult:
        try:
            return await self.tools.execute(tool_name, args)
        except Exception as e:
            logger.exception("Tool execution error: %s", tool_name)
            return ToolResult.fail(
                message="Sorry, something went wrong while doing that. Please try again.",
                error=str(e) or type(e).__name__,
            )


async def stream_assistant_turn(
    database: Database,
    user_id: UUID,
    history: list[ChatMessageIn],
    settings: Settings,
) -> AsyncIterator[bytes]:
    """Encoded frames for one turn, with a database session held for its duration."""
    async with database.session() as db:
        try:
            categories = await CategoryDirectory(db).list()
        except StoreError:
            logger.exception("Failed to load categories for assistant turn")
            yield encode_frame(ErrorFrame(detail=MODEL_ERROR_DETAIL))
            return

        tools = create_wishlist_tools(db, user_id, categories, settings)
        dispatcher = IntentDispatcher(tools, categories, settings=settings)
        async for frame in dispatcher.stream(history):
            yield encode_frame(frame)
