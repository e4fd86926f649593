"""Pydantic schemas for generated messages and the events streamed to clients

Generated messages use a part-based content model: an assistant message holds
text and tool-call parts, a tool message holds tool-result parts. Stream
events are a tagged union on ``type`` and are written to the client as
Server-Sent Events, one JSON object per ``data:`` line.
"""

from typing import Annotated, Any, List, Literal, Union
from uuid import uuid4
from pydantic import BaseModel, Field, TypeAdapter


# ============================================================================
# Message Parts
# ============================================================================

class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: dict = Field(default_factory=dict)


class ToolResultPart(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


MessagePart = Annotated[
    Union[TextPart, ToolCallPart, ToolResultPart],
    Field(discriminator="type"),
]


class ResponseMessage(BaseModel):
    """A message produced during one generation turn"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["assistant", "tool"]
    content: Union[str, List[MessagePart]]


# ============================================================================
# Stream Events
# ============================================================================

class _Event(BaseModel):
    def to_sse(self) -> str:
        return f"data: {self.model_dump_json()}\n\n"


class MetadataEvent(_Event):
    type: Literal["metadata"] = "metadata"
    name: str
    value: Any = None


class TextDeltaEvent(_Event):
    type: Literal["text-delta"] = "text-delta"
    delta: str


class ToolCallEvent(_Event):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: dict = Field(default_factory=dict)


class ToolResultEvent(_Event):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    error: str


class FinishEvent(_Event):
    type: Literal["finish"] = "finish"
    finish_reason: str = "stop"
    messages: List[ResponseMessage] = Field(default_factory=list)


StreamEvent = Annotated[
    Union[MetadataEvent, TextDeltaEvent, ToolCallEvent, ToolResultEvent, ErrorEvent, FinishEvent],
    Field(discriminator="type"),
]

stream_event_adapter = TypeAdapter(StreamEvent)


def parse_sse_event(line: str):
    """Decode one ``data:`` line written by ``to_sse``"""
    return stream_event_adapter.validate_json(line[len("data: "):])
