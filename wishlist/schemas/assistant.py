"""Pydantic schemas for the conversational assistant."""

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from wishlist.schemas.common import BaseSchema, CamelSchema

MessageRole = Literal["user", "assistant", "system"]
ToolName = Literal["createItem", "queryItems", "toggleItem"]

TOOL_NAMES: tuple[ToolName, ...] = ("createItem", "queryItems", "toggleItem")

# === Chat API Schemas ===


class ChatMessageIn(BaseSchema):
    """One entry of the client-held history, stripped of bookkeeping."""

    role: MessageRole
    content: str


class ChatRequest(BaseSchema):
    """Request for one assistant turn. The client sends the whole history.

    There is no cap on history length; the dispatcher windows what it
    forwards to the model.
    """

    messages: list[ChatMessageIn] = Field(..., min_length=1)

    @field_validator("messages")
    @classmethod
    def _last_message_from_user(cls, value: list[ChatMessageIn]) -> list[ChatMessageIn]:
        if value[-1].role != "user" or not value[-1].content.strip():
            raise ValueError("the last message must be a non-empty user message")
        return value


# === Tool Schemas ===


class ToolResult(BaseSchema):
    """Outcome of one tool execution. Failures always carry an error detail."""

    success: bool
    data: Any = None
    message: str
    error: str | None = None

    @model_validator(mode="after")
    def _failure_has_error(self) -> "ToolResult":
        if not self.success and not self.error:
            raise ValueError("a failed ToolResult must carry an error")
        return self

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ToolResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, error: str, data: Any = None) -> "ToolResult":
        return cls(success=False, data=data, message=message, error=error)


class ToolInvocation(CamelSchema):
    """A tool call made by the assistant within one message."""

    call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: ToolResult | None = None


# === Session Message ===


def _new_message_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(UTC)


class Message(CamelSchema):
    """A single turn in the client-held conversation log."""

    id: str = Field(default_factory=_new_message_id)
    role: MessageRole
    content: str = ""
    tool_invocations: list[ToolInvocation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_now)
    error: bool = False

    def to_history(self) -> ChatMessageIn:
        """Role and content only, as sent back to the server."""
        return ChatMessageIn(role=self.role, content=self.content)


# === Suggestion Schemas ===


class SuggestionRequest(BaseSchema):
    """Request for items similar to an existing one."""

    action: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=500)
    category: str | None = Field(None, max_length=100)


class Suggestion(CamelSchema):
    """One suggested item."""

    title: str
    description: str
    image_search_term: str | None = None


class SuggestionsResponse(BaseSchema):
    """Suggestions generated for one item."""

    suggestions: list[Suggestion]
