# Pydantic v2 models for conversation memory, backend replies and tool results.

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .fs import normalize_path


class CustomBaseModel(BaseModel):
    """Pydantic base model configured to forbid unknown fields for strict validation."""
    model_config = ConfigDict(extra="forbid")


class FrozenModel(CustomBaseModel):
    """Strict model that cannot be mutated once created."""
    model_config = ConfigDict(extra="forbid", frozen=True)


class ToolInvocation(FrozenModel):

    id: str = Field(..., description="Backend-assigned tool call id")
    name: str = Field(..., description="Tool name")
    arguments: Dict[str, str] = Field(default_factory=dict, description="Tool arguments, stringly typed")


# -----------------------------
# Conversation memory
# -----------------------------

class SystemMessage(FrozenModel):
    role: Literal["system"] = "system"
    text: str


class UserMessage(FrozenModel):
    role: Literal["user"] = "user"
    text: str


class AssistantMessage(FrozenModel):
    """Either plain content or a batch of tool calls, never both."""

    role: Literal["assistant"] = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[ToolInvocation]] = None

    @model_validator(mode="after")
    def _content_xor_tool_calls(self) -> "AssistantMessage":
        if (self.content is None) == (self.tool_calls is None):
            raise ValueError("assistant message needs exactly one of content or tool_calls")
        return self


class ToolMessage(FrozenModel):
    role: Literal["tool"] = "tool"
    text: str
    call_id: str
    tool_name: str


Message = Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage]


# -----------------------------
# Backend replies
# -----------------------------

class StructuredReply(CustomBaseModel):
    """Shape the backend must use for plain assistant content."""

    message: str = Field(..., description="Message to show the user")
    turn_over: bool = Field(..., description="True when the assistant is done and waits for the user")


class AssistantReply(FrozenModel):
    kind: Literal["message"] = "message"
    message: str
    turn_over: bool


class ToolCallsReply(FrozenModel):
    kind: Literal["tool_calls"] = "tool_calls"
    tool_calls: List[ToolInvocation]


ChatResult = Union[AssistantReply, ToolCallsReply]


# -----------------------------
# Tool results
# -----------------------------

class ToolResult(FrozenModel):
    """Outcome of a tool call. Failures are values, not exceptions."""

    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def fail(cls, text: str) -> "ToolResult":
        return cls(text=text, is_error=True)


class StagedFile(CustomBaseModel):
    """Proposed full content for a file, produced by edit_file/write_file."""

    path: str
    content: str
    diff: Optional[str] = None

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        return normalize_path(v)
