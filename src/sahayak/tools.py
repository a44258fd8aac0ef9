# Tool capability, reflective registry and the built-in tools.

import inspect
import os
import pathlib
import subprocess
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .changes import ChangeStore, ChangeStoreError
from .config import DIFF_CONTEXT_LINES, MAX_FILES_RETURNED
from .context import Context
from .diff import unified_replace
from .fs import glob_repo_paths, normalize_path
from .models import StagedFile, ToolResult

ApprovalMessage = Tuple[str, str]


class Workspace:
    """What a tool function sees: repo root, console context and the staged view of files."""

    def __init__(self, changes: ChangeStore, ctx: Optional[Context] = None, diff_context: int = DIFF_CONTEXT_LINES) -> None:
        self.changes = changes
        self.ctx = ctx or changes.ctx
        self.diff_context = diff_context

    @property
    def repo_root(self) -> pathlib.Path:
        return self.changes.repo_root


class Tool(Protocol):
    """Capability every tool exposes to the gateway and the session."""

    name: str
    staged: bool

    def describe(self) -> Dict[str, Any]:
        ...

    def requires_approval(self) -> bool:
        ...

    def approval_message(self, args: Dict[str, str]) -> Optional[ApprovalMessage]:
        ...

    def invoke(self, ws: Workspace, args: Dict[str, str]) -> ToolResult:
        ...


# -----------------------------
# Reflection utilities and registry
# -----------------------------

_type_map = {
    str: {"type": "string"},
    int: {"type": "integer"},
    bool: {"type": "boolean"},
    float: {"type": "number"},
}


def _merge_schema(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Shallow-merge override fields into base JSON Schema for a parameter."""
    if not override:
        return base
    out = dict(base)
    out.update({k: v for k, v in override.items() if v is not None})
    return out


def _build_parameters_schema(fn: Callable, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    sig = inspect.signature(fn)
    props: Dict[str, Any] = {}
    required: List[str] = []
    # Skip first arg (workspace)
    for p in list(sig.parameters.values())[1:]:
        ann = p.annotation if p.annotation is not inspect.Parameter.empty else str
        props[p.name] = _merge_schema(_type_map.get(ann, {"type": "string"}), (overrides or {}).get(p.name))
        if p.default is inspect.Parameter.empty:
            required.append(p.name)
    return {
        "type": "object",
        "properties": props,
        "required": required,
        "additionalProperties": False,
    }


def _required_message(param: str) -> str:
    # old_string -> "Old string is required"
    return f"{param.replace('_', ' ').capitalize()} is required"


class FunctionTool:
    """A plain function exposed as a tool; its parameter schema is read off the signature."""

    def __init__(
        self,
        fn: Callable,
        name: str,
        description: str,
        requires_approval: bool = False,
        approval: Optional[Callable[[Dict[str, str]], ApprovalMessage]] = None,
        staged: bool = False,
        param_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> None:
        self.fn = fn
        self.name = name
        self.description = description
        self.staged = staged
        self._requires_approval = requires_approval
        self._approval = approval
        self.schema = _build_parameters_schema(fn, overrides=param_overrides)

    def describe(self) -> Dict[str, Any]:
        return {"description": self.description, "parameters": self.schema, "strict": True}

    def requires_approval(self) -> bool:
        return self._requires_approval

    def approval_message(self, args: Dict[str, str]) -> Optional[ApprovalMessage]:
        if self._approval is None:
            return None
        return self._approval(args)

    def call(self, ws: Workspace, args: Dict[str, str]) -> Any:
        """Bind args to the function and run it. Returns the raw result, or a failed ToolResult."""
        kwargs: Dict[str, Any] = {}
        for p in list(inspect.signature(self.fn).parameters.values())[1:]:
            if p.name in args:
                kwargs[p.name] = args[p.name]
            elif p.default is inspect.Parameter.empty:
                return ToolResult.fail(_required_message(p.name))
        try:
            return self.fn(ws, **kwargs)
        except Exception as e:
            return ToolResult.fail(f"Tool {self.name} failed: {e}")

    def invoke(self, ws: Workspace, args: Dict[str, str]) -> ToolResult:
        raw = self.call(ws, args)
        if isinstance(raw, ToolResult):
            return raw
        if isinstance(raw, dict) and "_meta_error" in raw:
            return ToolResult.fail(str(raw["_meta_error"]))
        if isinstance(raw, StagedFile):
            # Staged tools only stage through the gateway; a direct call just reports the proposal.
            return ToolResult.ok(raw.diff or raw.content)
        return ToolResult.ok(str(raw))


_REGISTRY: Dict[str, FunctionTool] = {}


def tool(
    name: str,
    description: str,
    *,
    requires_approval: bool = False,
    approval: Optional[Callable[[Dict[str, str]], ApprovalMessage]] = None,
    staged: bool = False,
    param_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
):
    """Decorator to register a function as a built-in tool with a reflective schema.

    param_overrides allows per-parameter JSON Schema fields like description, pattern, enum, etc.
    """
    def _wrap(fn: Callable):
        _REGISTRY[name] = FunctionTool(
            fn,
            name,
            description,
            requires_approval=requires_approval,
            approval=approval,
            staged=staged,
            param_overrides=param_overrides,
        )
        return fn
    return _wrap


def builtin_tools() -> List[FunctionTool]:
    return list(_REGISTRY.values())


class ToolRegistry:
    """Name -> Tool mapping. Defaults to every built-in tool."""

    def __init__(self, tools: Optional[Iterable[Tool]] = None) -> None:
        self._tools: Dict[str, Tool] = {}
        for t in (builtin_tools() if tools is None else tools):
            self._tools[t.name] = t

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def specs(self) -> List[Dict[str, Any]]:
        """Return OpenAI function specs for every registered tool."""
        specs: List[Dict[str, Any]] = []
        for t in self._tools.values():
            d = t.describe()
            specs.append({
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": d["description"],
                    "parameters": d["parameters"],
                    "strict": bool(d.get("strict", True)),
                },
            })
        return specs


# -----------------------------
# Plain tools
# -----------------------------

@tool(
    name="read_file",
    description="Read the contents of a file. Staged but unaccepted edits are included.",
    param_overrides={"path": {"description": "Path of the file, relative to the project root"}},
)
def read_file(ws: Workspace, path: str) -> Any:
    np = normalize_path(path)
    try:
        return ws.changes.read(np)
    except FileNotFoundError:
        return {"_meta_error": f"File '{np}' not found"}
    except ChangeStoreError as e:
        return {"_meta_error": str(e)}


@tool(
    name="search_files",
    description="Find files whose path matches a glob pattern, searching recursively from the project root.",
    param_overrides={"pattern": {"description": "Glob pattern, e.g. '*.py' or 'src/**/*.toml'"}},
)
def search_files(ws: Workspace, pattern: str) -> Any:
    try:
        paths = glob_repo_paths(ws.repo_root, pattern)
    except (ValueError, NotImplementedError) as e:
        return {"_meta_error": f"Invalid glob pattern '{pattern}': {e}"}
    if not paths:
        return {"_meta_error": f"No files found matching pattern '{pattern}'"}
    truncated = len(paths) > MAX_FILES_RETURNED
    shown = paths[:MAX_FILES_RETURNED]
    header = f"Found {len(paths)} file(s) matching pattern '{pattern}'"
    if truncated:
        header += f" (showing first {MAX_FILES_RETURNED} results)"
    return header + ":\n" + "\n".join(shown)


def _command_approval(args: Dict[str, str]) -> ApprovalMessage:
    return "Execute Command", f"Command: {args.get('command', 'unknown')}"


@tool(
    name="execute_command",
    description="Execute a shell command in the project root and return its output",
    requires_approval=True,
    approval=_command_approval,
    param_overrides={"command": {"description": "The shell command to execute"}},
)
def execute_command(ws: Workspace, command: str) -> Any:
    shell = ["cmd", "/C", command] if os.name == "nt" else ["sh", "-c", command]
    ws.ctx.log(f"Running command: {command}")
    try:
        proc = subprocess.run(shell, cwd=str(ws.repo_root), capture_output=True, text=True)
    except OSError as e:
        return {"_meta_error": f"Failed to execute command '{command}': {e}"}

    result = proc.stdout or ""
    if proc.stderr:
        if result:
            result += "\n"
        result += "STDERR:\n" + proc.stderr

    if proc.returncode != 0:
        return {"_meta_error": f"Command '{command}' failed with exit code {proc.returncode}\nOutput: {result}"}
    return result or "Command executed successfully with no output"


# -----------------------------
# Content-mutating tools (staged by the gateway, never written directly)
# -----------------------------

def _edit_approval(args: Dict[str, str]) -> ApprovalMessage:
    return (
        "Edit File",
        f"File: {args.get('path', 'unknown')}\nReplace: {args.get('old_string', '')!r}\nWith: {args.get('new_string', '')!r}",
    )


def _write_approval(args: Dict[str, str]) -> ApprovalMessage:
    content = args.get("content", "")
    preview = content[:100] + "..." if len(content) > 100 else content
    return "Write File", f"File: {args.get('path', 'unknown')}\nContent:\n{preview}"


@tool(
    name="edit_file",
    description="Replace the single occurrence of old_string with new_string in a file",
    requires_approval=True,
    approval=_edit_approval,
    staged=True,
    param_overrides={
        "path": {"description": "Path of the file to edit"},
        "old_string": {"description": "Exact text to replace; must appear exactly once"},
        "new_string": {"description": "Replacement text"},
    },
)
def edit_file(ws: Workspace, path: str, old_string: str, new_string: str) -> Any:
    np = normalize_path(path)
    try:
        content = ws.changes.read(np)
    except FileNotFoundError:
        return {"_meta_error": f"File '{np}' not found"}
    except ChangeStoreError as e:
        return {"_meta_error": str(e)}
    count = content.count(old_string)
    if count == 0:
        return {"_meta_error": f"String '{old_string}' not found in file '{np}'"}
    if count > 1:
        return {
            "_meta_error": f"String '{old_string}' appears {count} times in file '{np}'. "
            "Please provide a more specific string that appears only once"
        }
    return StagedFile(
        path=np,
        content=content.replace(old_string, new_string, 1),
        diff=unified_replace(np, content, old_string, new_string, ws.diff_context),
    )


@tool(
    name="write_file",
    description="Write content to a file, replacing it entirely or creating it",
    requires_approval=True,
    approval=_write_approval,
    staged=True,
    param_overrides={
        "path": {"description": "Path of the file to write"},
        "content": {"description": "Full new content of the file"},
    },
)
def write_file(ws: Workspace, path: str, content: str) -> StagedFile:
    return StagedFile(path=path, content=content)
