# Tool dispatch: plain tools run directly, content-mutating tools are staged in the ChangeStore.

from typing import Any, Dict, List, Optional

from .changes import ChangeStore, ChangeStoreError
from .config import DIFF_CONTEXT_LINES
from .context import Context
from .diff import unified_error, unified_overwrite, unified_replace
from .events import (
    ChangeAccepted,
    ChangeDeclined,
    ChangeError,
    Event,
    InputRequest,
    Observer,
    PendingFileChange,
)
from .models import StagedFile, ToolResult
from .tools import Tool, ToolRegistry, Workspace


class ToolGateway:
    """
    Single entry point for tool calls coming from the model.

    edit_file and write_file never touch disk here: the proposed content is
    staged as a pending change and a PendingFileChange event is emitted. The
    user later accepts or declines it through resolve_change.
    """

    def __init__(
        self,
        changes: ChangeStore,
        registry: Optional[ToolRegistry] = None,
        observer: Optional[Observer] = None,
        ctx: Optional[Context] = None,
        diff_context: int = DIFF_CONTEXT_LINES,
    ) -> None:
        self.changes = changes
        self.registry = registry or ToolRegistry()
        self.observer = observer
        self.ctx = ctx or changes.ctx
        self.workspace = Workspace(changes, self.ctx, diff_context=diff_context)

    def attach(self, observer: Observer) -> None:
        self.observer = observer

    def _emit(self, event: Event) -> None:
        if self.observer is not None:
            self.observer.on_event(event)

    # ---------- Catalogue ----------

    def get_tool(self, name: str) -> Optional[Tool]:
        return self.registry.get(name)

    def catalogue(self) -> List[Dict[str, Any]]:
        return self.registry.specs()

    def requires_approval(self, name: str) -> bool:
        t = self.registry.get(name)
        return bool(t and t.requires_approval())

    def preview(self, name: str, args: Dict[str, str]) -> Optional[str]:
        """Diff preview of what a staged tool call would do, or None for other tools."""
        t = self.registry.get(name)
        if t is None or not getattr(t, "staged", False):
            return None
        path = args.get("path", "")
        old = args.get("old_string", "")
        new = args.get("new_string", args.get("content", ""))
        if not path:
            return unified_error("<unknown>", "Path is required", old, new)
        try:
            current = self.changes.current_content(path)
        except ChangeStoreError as e:
            return unified_error(path, str(e), old, new)
        if name == "edit_file":
            if "old_string" not in args or "new_string" not in args:
                return unified_error(path, "Old string and new string are required", old, new)
            return unified_replace(path, current, old, new, self.workspace.diff_context)
        return unified_overwrite(path, current, args.get("content", ""))

    def approval_request(self, name: str, args: Dict[str, str]) -> InputRequest:
        t = self.registry.get(name)
        msg = t.approval_message(args) if t is not None else None
        if msg is None:
            title, body = "Tool Approval", f"Sahayak wants to use tool: {name}"
        else:
            title, body = msg
        diff = self.preview(name, args)
        if diff:
            body = f"{body}\n\n{diff}"
        return InputRequest.approval(name, title, body)

    # ---------- Dispatch ----------

    def dispatch(self, name: str, args: Dict[str, str]) -> ToolResult:
        """
        Run a tool call and return its result.

        Args:
            name: Tool name as sent by the model.
            args: String arguments.

        Returns:
            ToolResult; failures are reported with is_error set, never raised.
        """
        t = self.registry.get(name)
        if t is None:
            return ToolResult.fail(f"Tool {name} not found")
        self.ctx.log(f"Invoking tool: {name} with args: {args}")
        if getattr(t, "staged", False):
            return self._stage(t, args)
        return t.invoke(self.workspace, args)

    def _stage(self, t: Tool, args: Dict[str, str]) -> ToolResult:
        raw = t.call(self.workspace, args)
        if isinstance(raw, ToolResult):
            return raw
        if isinstance(raw, dict) and "_meta_error" in raw:
            return ToolResult.fail(str(raw["_meta_error"]))
        if not isinstance(raw, StagedFile):
            return ToolResult.fail(f"Tool {t.name} did not produce file content")
        try:
            change_id = self.changes.add_change(raw.path, raw.content, diff=raw.diff)
        except ChangeStoreError as e:
            return ToolResult.fail(str(e))
        change = self.changes.get_change(change_id)
        self._emit(PendingFileChange(change_id=change_id, file_path=change.file_path, diff=change.diff))
        return ToolResult.ok(
            f"File edit queued as change {change_id} for '{change.file_path}'. "
            "It will be applied once the user accepts it."
        )

    # ---------- Change resolution ----------

    def resolve_change(self, change_id: int, accept: bool) -> str:
        """
        Accept or decline a staged change and notify the observer.

        Raises:
            ChangeStoreError: After a ChangeError event has been emitted.
        """
        try:
            if accept:
                accepted = self.changes.accept_change(change_id)
            else:
                self.changes.decline_change(change_id)
        except ChangeStoreError as e:
            self.ctx.log(f"Change {change_id} could not be resolved: {e}")
            self._emit(ChangeError(change_id=change_id, error=str(e)))
            raise
        if accept:
            self._emit(ChangeAccepted(change_id=change_id, accepted_changes=accepted))
            return f"Accepted change {change_id} and {max(0, len(accepted) - 1)} previous changes"
        self._emit(ChangeDeclined(change_id=change_id))
        return f"Declined change {change_id}"

    def accept_change(self, change_id: int) -> str:
        return self.resolve_change(change_id, True)

    def decline_change(self, change_id: int) -> str:
        return self.resolve_change(change_id, False)

    def list_pending_changes(self) -> str:
        pending = self.changes.get_pending_changes()
        if not pending:
            return "No pending changes"
        lines = [f"Pending changes ({len(pending)}):"]
        lines.extend(f"  #{c.id} {c.file_path}" for c in pending)
        return "\n".join(lines)
