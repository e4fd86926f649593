"""Pydantic schemas for chat and message API"""

from typing import Any, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Client Messages
# ============================================================================

class ToolInvocation(BaseModel):
    """A tool call as the client tracks it, optionally with its result"""
    model_config = ConfigDict(populate_by_name=True)

    state: Literal["partial-call", "call", "result"] = "call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: dict = Field(default_factory=dict)
    result: Optional[Any] = None


class UIMessage(BaseModel):
    """One entry of the message history the client sends with each turn"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: Literal["system", "user", "assistant", "tool", "data"]
    content: Union[str, List[dict]] = ""
    tool_invocations: Optional[List[ToolInvocation]] = Field(default=None, alias="toolInvocations")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class ChatRequest(BaseModel):
    """Request to submit one turn and stream the response"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    messages: List[UIMessage]
    model_id: str = Field(alias="modelId")


# ============================================================================
# Stored Records
# ============================================================================

class ChatResponse(BaseModel):
    id: str
    user_id: str
    title: str
    created_at: datetime


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    role: str
    content: Union[str, List[dict]]
    created_at: datetime


class ModelResponse(BaseModel):
    id: str
    label: str
    description: str
