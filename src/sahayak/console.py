# Terminal observer: prints session events and reads user input, approvals and change commands.

from typing import Optional

from .changes import ChangeStoreError
from .context import Context
from .events import (
    APPROVED,
    AwaitingAssistantResponse,
    ChangeAccepted,
    ChangeDeclined,
    ChangeError,
    Event,
    InputRequest,
    PendingFileChange,
    ReceivedAssistantMessage,
    ReceivedToolCall,
    ReceivedToolResponse,
    SessionEnded,
    SessionStarted,
)
from .gateway import ToolGateway


class ConsoleObserver:
    """Observer backed by stdin/stdout through a Context."""

    def __init__(self, ctx: Context, gateway: Optional[ToolGateway] = None) -> None:
        self.ctx = ctx
        self.gateway = gateway

    # ---------- Events ----------

    def on_event(self, event: Event) -> None:
        ctx = self.ctx
        if isinstance(event, SessionStarted):
            ctx.send_to_user(f"Sahayak ready at {ctx.repo_root}")
            ctx.send_to_user("Type :help for commands, exit to quit.")
        elif isinstance(event, SessionEnded):
            ctx.send_to_user("Goodbye.")
        elif isinstance(event, AwaitingAssistantResponse):
            ctx.log("Thinking...")
        elif isinstance(event, ReceivedAssistantMessage):
            ctx.send_to_user(f"\n{event.message}\n")
        elif isinstance(event, ReceivedToolCall):
            ctx.send_to_user(f"  {event.status}")
        elif isinstance(event, ReceivedToolResponse):
            if not event.approved:
                ctx.send_to_user(f"  {event.tool_name} was not run")
            ctx.log(f"{event.tool_name} -> {event.response[:500]}")
        elif isinstance(event, PendingFileChange):
            ctx.send_to_user(f"Change #{event.change_id} staged for {event.file_path}:")
            ctx.send_to_user(event.diff.rstrip("\n"))
            ctx.send_to_user(f"Use :accept {event.change_id} or :decline {event.change_id}.")
        elif isinstance(event, ChangeAccepted):
            ids = ", ".join(f"#{i}" for i in event.accepted_changes)
            ctx.send_to_user(f"Applied {ids or 'nothing'}")
        elif isinstance(event, ChangeDeclined):
            ctx.send_to_user(f"Declined #{event.change_id}")
        elif isinstance(event, ChangeError):
            ctx.log(f"Change #{event.change_id} failed: {event.error}")

    # ---------- Input ----------

    def request_input(self, request: InputRequest) -> str:
        if request.kind == "approval":
            return self._request_approval(request)
        while True:
            try:
                text = self.ctx.prompt("> ").strip()
            except EOFError:
                return "exit"
            if not text:
                continue
            if text.startswith(":"):
                if self.handle_command(text):
                    return "exit"
                continue
            return text

    def _request_approval(self, request: InputRequest) -> str:
        self.ctx.send_to_user(f"[{request.title}]")
        if request.message:
            self.ctx.send_to_user(request.message.rstrip("\n"))
        answer = self.ctx.prompt("Approve? [y/N] ").strip().lower()
        return APPROVED if answer in ("y", "yes") else "declined"

    def cmd_help(self) -> None:
        """Print a list of supported commands and brief descriptions."""
        self.ctx.send_to_user(":changes              - List pending changes")
        self.ctx.send_to_user(":accept <id>          - Write change <id> and every older pending change to disk")
        self.ctx.send_to_user(":decline <id>         - Drop a pending change")
        self.ctx.send_to_user(":help                 - Show this help")
        self.ctx.send_to_user(":quit                 - Exit (same as typing exit)")

    def handle_command(self, text: str) -> bool:
        """Run a ':' command. Returns True when the session should end."""
        parts = text.split()
        cmd, rest = parts[0], parts[1:]
        if cmd in (":quit", ":exit"):
            return True
        if cmd == ":help":
            self.cmd_help()
            return False
        if self.gateway is None:
            self.ctx.error_message("No workspace attached")
            return False
        if cmd == ":changes":
            self.ctx.send_to_user(self.gateway.list_pending_changes())
            return False
        if cmd in (":accept", ":decline"):
            if len(rest) != 1 or not rest[0].lstrip("#").isdigit():
                self.ctx.error_message(f"usage: {cmd} <id>")
                return False
            change_id = int(rest[0].lstrip("#"))
            try:
                self.ctx.log(self.gateway.resolve_change(change_id, cmd == ":accept"))
            except ChangeStoreError as e:
                self.ctx.error_message(str(e))
            return False
        self.ctx.error_message(f"unknown command: {cmd} (try :help)")
        return False
