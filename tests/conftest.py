from typing import Any, Dict, List, Optional

import pytest

from sahayak.changes import ChangeStore
from sahayak.context import Context
from sahayak.gateway import ToolGateway
from sahayak.models import ToolResult
from sahayak.tools import ToolRegistry


class ScriptedBackend:
    """Returns scripted replies in order; an Exception item is raised instead of returned."""

    def __init__(self, replies: List[Any], repeat_last: bool = False) -> None:
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.calls: List[Dict[str, Any]] = []

    def complete(self, model, history, tools):
        self.calls.append({"model": model, "history": list(history), "tools": tools})
        if not self.replies:
            raise AssertionError("backend called more often than scripted")
        item = self.replies[0] if (self.repeat_last and len(self.replies) == 1) else self.replies.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingObserver:
    """Feeds scripted user inputs (then "exit") and approvals, and records every event."""

    def __init__(self, inputs: Optional[List[str]] = None, approvals: Optional[List[Any]] = None) -> None:
        self.inputs = list(inputs or []) + ["exit"]
        self.approvals = list(approvals or [])
        self.events: List[Any] = []
        self.approval_requests: List[Any] = []

    def on_event(self, event) -> None:
        self.events.append(event)

    def request_input(self, request) -> str:
        if request.kind == "approval":
            self.approval_requests.append(request)
            answer = self.approvals.pop(0)
        else:
            answer = self.inputs.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def names(self) -> List[str]:
        return [type(e).__name__ for e in self.events]


class CountingTool:
    """Plain tool that records its invocations."""

    staged = False

    def __init__(self, name: str = "probe", needs_approval: bool = False, result: str = "done") -> None:
        self.name = name
        self.needs_approval = needs_approval
        self.result = result
        self.invocations: List[Dict[str, str]] = []

    def describe(self) -> Dict[str, Any]:
        return {
            "description": f"{self.name} test tool",
            "parameters": {"type": "object", "properties": {}, "required": [], "additionalProperties": False},
            "strict": True,
        }

    def requires_approval(self) -> bool:
        return self.needs_approval

    def approval_message(self, args):
        return None

    def invoke(self, ws, args) -> ToolResult:
        self.invocations.append(dict(args))
        return ToolResult.ok(self.result)


@pytest.fixture
def quiet_ctx(tmp_path):
    return Context(tmp_path, verbose=False)


@pytest.fixture
def store(tmp_path, quiet_ctx):
    return ChangeStore(tmp_path, ctx=quiet_ctx)


@pytest.fixture
def gateway(store):
    return ToolGateway(store, registry=ToolRegistry())
