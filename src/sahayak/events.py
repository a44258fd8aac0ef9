# Events emitted to the observer, the Status shown while tools run, and the observer interface.

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Protocol, Union

from pydantic import Field

from .models import FrozenModel

# -----------------------------
# Status
# -----------------------------

StatusKind = Literal[
    "thinking",
    "reading_file",
    "writing_file",
    "searching_files",
    "editing_file",
    "executing_command",
    "executing_tool",
]


class Status(FrozenModel):
    """What the assistant is doing right now. Lives for a single tool call."""

    kind: StatusKind = "thinking"
    subject: str = ""

    @classmethod
    def for_tool_call(cls, tool_name: str, arguments: Dict[str, str]) -> "Status":
        if tool_name == "read_file":
            return cls(kind="reading_file", subject=arguments.get("path", ""))
        if tool_name == "write_file":
            return cls(kind="writing_file", subject=arguments.get("path", ""))
        if tool_name == "edit_file":
            return cls(kind="editing_file", subject=arguments.get("path", ""))
        if tool_name == "search_files":
            return cls(kind="searching_files", subject=arguments.get("pattern", ""))
        if tool_name == "execute_command":
            return cls(kind="executing_command", subject=arguments.get("command", ""))
        return cls(kind="executing_tool", subject=tool_name)

    def __str__(self) -> str:
        if self.kind == "reading_file":
            return f"Reading {self.subject}..."
        if self.kind == "writing_file":
            return f"Writing {self.subject}..."
        if self.kind == "searching_files":
            return f"Searching for '{self.subject}'..."
        if self.kind == "editing_file":
            return f"Editing {self.subject}..."
        if self.kind == "executing_command":
            return f"Executing '{self.subject}'..."
        if self.kind == "executing_tool":
            return f"Calling tool '{self.subject}'"
        return "Thinking..."


# -----------------------------
# Events
# -----------------------------

class SessionStarted(FrozenModel):
    kind: Literal["session_started"] = "session_started"


class SessionEnded(FrozenModel):
    kind: Literal["session_ended"] = "session_ended"


class ReceivedUserMessage(FrozenModel):
    kind: Literal["received_user_message"] = "received_user_message"
    message: str


class AwaitingAssistantResponse(FrozenModel):
    kind: Literal["awaiting_assistant_response"] = "awaiting_assistant_response"


class ReceivedAssistantMessage(FrozenModel):
    kind: Literal["received_assistant_message"] = "received_assistant_message"
    message: str


class ReceivedToolCall(FrozenModel):
    kind: Literal["received_tool_call"] = "received_tool_call"
    tool_name: str
    parameters: Dict[str, str] = Field(default_factory=dict)
    status: Status = Field(default_factory=Status)


class ReceivedToolResponse(FrozenModel):
    kind: Literal["received_tool_response"] = "received_tool_response"
    tool_name: str
    response: str
    parameters: Dict[str, str] = Field(default_factory=dict)
    approved: bool


class PendingFileChange(FrozenModel):
    kind: Literal["pending_file_change"] = "pending_file_change"
    change_id: int
    file_path: str
    diff: str


class ChangeAccepted(FrozenModel):
    kind: Literal["change_accepted"] = "change_accepted"
    change_id: int
    accepted_changes: List[int]


class ChangeDeclined(FrozenModel):
    kind: Literal["change_declined"] = "change_declined"
    change_id: int


class ChangeError(FrozenModel):
    kind: Literal["change_error"] = "change_error"
    change_id: int
    error: str


Event = Union[
    SessionStarted,
    SessionEnded,
    ReceivedUserMessage,
    AwaitingAssistantResponse,
    ReceivedAssistantMessage,
    ReceivedToolCall,
    ReceivedToolResponse,
    PendingFileChange,
    ChangeAccepted,
    ChangeDeclined,
    ChangeError,
]


# -----------------------------
# Input requests and the observer interface
# -----------------------------

class InputRequest(FrozenModel):
    """Either free-form user text or an approval for one tool call."""

    kind: Literal["user_input", "approval"] = "user_input"
    tool_name: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def user_input(cls) -> "InputRequest":
        return cls()

    @classmethod
    def approval(cls, tool_name: str, title: str, message: str) -> "InputRequest":
        return cls(kind="approval", tool_name=tool_name, title=title, message=message)


APPROVED = "approved"


class Observer(Protocol):
    """Sink for events and source of user input. Implementations may raise OSError or EOFError from request_input."""

    def on_event(self, event: Event) -> None:
        ...

    def request_input(self, request: InputRequest) -> str:
        ...
