from typing import List

from sahayak.console import ConsoleObserver
from sahayak.context import Context
from sahayak.events import (
    APPROVED,
    ChangeAccepted,
    InputRequest,
    PendingFileChange,
    ReceivedToolCall,
    Status,
)


class ScriptedContext(Context):
    def __init__(self, root, answers: List[str]) -> None:
        super().__init__(root, verbose=False)
        self.answers = list(answers)

    def prompt(self, label: str) -> str:
        if not self.answers:
            raise EOFError()
        return self.answers.pop(0)


def test_approval_prompt(tmp_path, capsys):
    obs = ConsoleObserver(ScriptedContext(tmp_path, ["y", "nah"]))
    req = InputRequest.approval("execute_command", "Execute Command", "Command: ls")
    assert obs.request_input(req) == APPROVED
    assert obs.request_input(req) != APPROVED
    out = capsys.readouterr().out
    assert "[Execute Command]" in out and "Command: ls" in out


def test_user_input_skips_blanks_and_runs_commands(tmp_path, gateway, capsys):
    gateway.dispatch("write_file", {"path": "a.txt", "content": "A"})
    obs = ConsoleObserver(ScriptedContext(tmp_path, ["", ":changes", "  hello  "]), gateway)
    assert obs.request_input(InputRequest.user_input()) == "hello"
    assert "Pending changes (1):\n  #1 a.txt" in capsys.readouterr().out


def test_accept_command_writes_file(tmp_path, gateway):
    gateway.dispatch("write_file", {"path": "a.txt", "content": "A"})
    obs = ConsoleObserver(ScriptedContext(tmp_path, [":accept 1", "exit"]), gateway)
    gateway.attach(obs)
    assert obs.request_input(InputRequest.user_input()) == "exit"
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "A"


def test_bad_change_id_is_reported(tmp_path, gateway, capsys):
    obs = ConsoleObserver(ScriptedContext(tmp_path, [":decline 7", ":decline x", ":quit"]), gateway)
    assert obs.request_input(InputRequest.user_input()) == "exit"
    err = capsys.readouterr().err
    assert "Change 7 not found" in err
    assert "usage: :decline <id>" in err


def test_eof_means_exit(tmp_path):
    obs = ConsoleObserver(ScriptedContext(tmp_path, []))
    assert obs.request_input(InputRequest.user_input()) == "exit"


def test_events_are_printed(tmp_path, capsys):
    obs = ConsoleObserver(ScriptedContext(tmp_path, []))
    obs.on_event(ReceivedToolCall(tool_name="search_files", parameters={"pattern": "*.py"},
                                  status=Status.for_tool_call("search_files", {"pattern": "*.py"})))
    obs.on_event(PendingFileChange(change_id=3, file_path="a.txt", diff="--- a.txt\n+++ a.txt\n"))
    obs.on_event(ChangeAccepted(change_id=3, accepted_changes=[2, 3]))
    out = capsys.readouterr().out
    assert "Searching for '*.py'..." in out
    assert "Use :accept 3 or :decline 3." in out
    assert "Applied #2, #3" in out


def test_status_text():
    assert str(Status()) == "Thinking..."
    assert str(Status.for_tool_call("execute_command", {"command": "make"})) == "Executing 'make'..."
    assert str(Status.for_tool_call("edit_file", {"path": "x.py"})) == "Editing x.py..."
    assert str(Status.for_tool_call("custom", {})) == "Calling tool 'custom'"
