import os

import pytest

from sahayak.config import MAX_FILES_RETURNED
from sahayak.tools import ToolRegistry, Workspace


@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def ws(store):
    return Workspace(store)


def test_builtin_catalogue(registry):
    assert set(registry.names()) == {"read_file", "search_files", "execute_command", "edit_file", "write_file"}
    specs = {s["function"]["name"]: s for s in registry.specs()}
    edit = specs["edit_file"]
    assert edit["type"] == "function"
    assert edit["function"]["strict"] is True
    params = edit["function"]["parameters"]
    assert params["required"] == ["path", "old_string", "new_string"]
    assert params["additionalProperties"] is False
    assert params["properties"]["old_string"]["type"] == "string"
    assert "description" in params["properties"]["old_string"]


def test_approval_flags(registry):
    assert registry.get("execute_command").requires_approval()
    assert registry.get("edit_file").requires_approval()
    assert registry.get("write_file").requires_approval()
    assert not registry.get("read_file").requires_approval()
    assert not registry.get("search_files").requires_approval()


def test_approval_messages(registry):
    title, body = registry.get("execute_command").approval_message({"command": "ls -la"})
    assert (title, body) == ("Execute Command", "Command: ls -la")
    title, body = registry.get("edit_file").approval_message({"path": "a.py", "old_string": "x", "new_string": "y"})
    assert title == "Edit File"
    assert body == "File: a.py\nReplace: 'x'\nWith: 'y'"
    _, body = registry.get("write_file").approval_message({"path": "a.py", "content": "z" * 150})
    assert body.endswith("z" * 100 + "...")
    assert registry.get("read_file").approval_message({"path": "a.py"}) is None


def test_missing_argument_is_a_tool_error(registry, ws):
    res = registry.get("read_file").invoke(ws, {})
    assert res.is_error and res.text == "Path is required"
    res = registry.get("edit_file").invoke(ws, {"path": "a.txt"})
    assert res.is_error and res.text == "Old string is required"


def test_read_file_sees_staged_content(tmp_path, registry, ws, store):
    (tmp_path / "a.txt").write_text("on disk", encoding="utf-8")
    assert registry.get("read_file").invoke(ws, {"path": "a.txt"}).text == "on disk"
    store.add_change("a.txt", "staged")
    assert registry.get("read_file").invoke(ws, {"path": "a.txt"}).text == "staged"


def test_read_file_not_found(registry, ws):
    res = registry.get("read_file").invoke(ws, {"path": "ghost.txt"})
    assert res.is_error
    assert res.text == "File 'ghost.txt' not found"


def test_read_file_rejects_paths_outside_the_repo(registry, ws):
    res = registry.get("read_file").invoke(ws, {"path": "../../etc/passwd"})
    assert res.is_error
    assert "escapes repo root" in res.text


def test_search_files(tmp_path, registry, ws):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "a.py").write_text("", encoding="utf-8")
    (tmp_path / "b.py").write_text("", encoding="utf-8")
    (tmp_path / "c.txt").write_text("", encoding="utf-8")
    res = registry.get("search_files").invoke(ws, {"pattern": "*.py"})
    assert not res.is_error
    assert res.text == "Found 2 file(s) matching pattern '*.py':\nb.py\npkg/a.py"


def test_search_files_truncates(tmp_path, registry, ws):
    for i in range(MAX_FILES_RETURNED + 5):
        (tmp_path / f"f{i:03}.log").write_text("", encoding="utf-8")
    res = registry.get("search_files").invoke(ws, {"pattern": "*.log"})
    first = res.text.splitlines()[0]
    assert first == f"Found {MAX_FILES_RETURNED + 5} file(s) matching pattern '*.log' (showing first {MAX_FILES_RETURNED} results):"
    assert len(res.text.splitlines()) == MAX_FILES_RETURNED + 1


def test_search_files_no_match(registry, ws):
    res = registry.get("search_files").invoke(ws, {"pattern": "*.rs"})
    assert res.is_error
    assert res.text == "No files found matching pattern '*.rs'"


@pytest.mark.skipif(os.name == "nt", reason="uses sh")
def test_execute_command_runs_in_repo_root(tmp_path, registry, ws):
    (tmp_path / "marker.txt").write_text("", encoding="utf-8")
    res = registry.get("execute_command").invoke(ws, {"command": "ls"})
    assert not res.is_error
    assert "marker.txt" in res.text


@pytest.mark.skipif(os.name == "nt", reason="uses sh")
def test_execute_command_reports_failures(registry, ws):
    res = registry.get("execute_command").invoke(ws, {"command": "echo oops >&2; exit 3"})
    assert res.is_error
    assert res.text.startswith("Command 'echo oops >&2; exit 3' failed with exit code 3")
    assert "STDERR:\noops" in res.text


@pytest.mark.skipif(os.name == "nt", reason="uses sh")
def test_execute_command_without_output(registry, ws):
    res = registry.get("execute_command").invoke(ws, {"command": "true"})
    assert res.text == "Command executed successfully with no output"


def test_edit_file_errors(tmp_path, registry, ws):
    (tmp_path / "a.txt").write_text("x x", encoding="utf-8")
    edit = registry.get("edit_file")
    res = edit.invoke(ws, {"path": "a.txt", "old_string": "y", "new_string": "z"})
    assert res.text == "String 'y' not found in file 'a.txt'"
    res = edit.invoke(ws, {"path": "a.txt", "old_string": "x", "new_string": "z"})
    assert res.text == (
        "String 'x' appears 2 times in file 'a.txt'. Please provide a more specific string that appears only once"
    )
    res = edit.invoke(ws, {"path": "missing.txt", "old_string": "x", "new_string": "z"})
    assert res.text == "File 'missing.txt' not found"
