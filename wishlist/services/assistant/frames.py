"""Typed frames exchanged between the assistant endpoint and its clients.

On the wire every frame is one Server-Sent-Event data record holding a JSON
object whose ``type`` field selects the frame kind::

    data: {"type":"text-delta","text":"Added "}

    data: {"type":"finish","reason":"stop"}

"""

from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wishlist.core.exceptions import FrameDecodeError
from wishlist.schemas.assistant import ToolResult
from wishlist.schemas.common import CamelSchema


class TextDeltaFrame(CamelSchema):
    type: Literal["text-delta"] = "text-delta"
    text: str


class ToolCallFrame(CamelSchema):
    type: Literal["tool-call"] = "tool-call"
    call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultFrame(CamelSchema):
    type: Literal["tool-result"] = "tool-result"
    call_id: str
    tool_name: str
    result: ToolResult


class FinishFrame(CamelSchema):
    type: Literal["finish"] = "finish"
    reason: str = "stop"


class ErrorFrame(CamelSchema):
    type: Literal["error"] = "error"
    detail: str


Frame = Annotated[
    TextDeltaFrame | ToolCallFrame | ToolResultFrame | FinishFrame | ErrorFrame,
    Field(discriminator="type"),
]

_frame_adapter: TypeAdapter[Frame] = TypeAdapter(Frame)

SSE_MEDIA_TYPE = "text/event-stream"


def encode_frame(frame: Frame) -> bytes:
    """Serialize a frame as one SSE data record."""
    return b"data: " + frame.model_dump_json().encode("utf-8") + b"\n\n"


def parse_frame(payload: str) -> Frame:
    """Parse the JSON payload of one complete SSE record.

    Raises:
        FrameDecodeError: If the payload is not JSON or not a known frame.
    """
    try:
        return _frame_adapter.validate_json(payload)
    except PydanticValidationError as e:
        raise FrameDecodeError(f"Malformed frame payload: {payload[:200]!r}") from e
