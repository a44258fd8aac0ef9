"""
Unified-diff previews for staged file changes.

These diffs are shown to a human approver; they are never applied as patches.
The real mutation is always a verbatim string replacement or a whole-file
overwrite.
"""

from typing import List


def _headers(path: str) -> List[str]:
    return [f"--- {path}\n", f"+++ {path}\n"]


def _stub(path: str, note: str, old_str: str, new_str: str) -> str:
    out = _headers(path)
    out.append("@@ -0,0 +0,0 @@\n")
    out.append(f"! {note}\n")
    out.append(f"- {old_str}\n+ {new_str}\n")
    return "".join(out)


def unified_replace(path: str, content: str, old_str: str, new_str: str, context_lines: int = 3) -> str:
    """
    Render the diff of replacing the single occurrence of old_str in content.

    When old_str occurs zero times or more than once the result is a stub diff
    with a zero hunk header and a note explaining why the edit will fail.

    Args:
        path: File path shown in the headers.
        content: Current file content.
        old_str: Text to be replaced; must occur exactly once.
        new_str: Replacement text.
        context_lines: Unchanged lines to show on each side of the change.

    Returns:
        The diff text, every line terminated by a newline.
    """
    occurrences = content.count(old_str)
    if occurrences == 0:
        return _stub(path, "Note: the specified old_string was not found; the operation will fail.", old_str, new_str)
    if occurrences > 1:
        return _stub(
            path,
            f"Note: the specified old_string appears {occurrences} times; operation requires a unique match.",
            old_str,
            new_str,
        )

    idx = content.find(old_str)
    lines = content.split("\n")
    old_lines = old_str.split("\n")
    new_lines = new_str.split("\n")

    # 0-based line indexes of the replaced block
    start_line = content[:idx].count("\n")
    end_line = start_line + len(old_lines) - 1

    hunk_start = max(0, start_line - context_lines)
    hunk_end = min(len(lines) - 1, end_line + context_lines)
    count_before = start_line - hunk_start
    count_after = max(0, hunk_end - end_line)

    old_count = count_before + len(old_lines) + count_after
    new_count = count_before + len(new_lines) + count_after

    out = _headers(path)
    out.append(f"@@ -{hunk_start + 1},{old_count} +{hunk_start + 1},{new_count} @@\n")
    for i in range(hunk_start, start_line):
        out.append(f" {lines[i]}\n")
    for line in old_lines:
        out.append(f"-{line}\n")
    for line in new_lines:
        out.append(f"+{line}\n")
    for i in range(end_line + 1, hunk_end + 1):
        out.append(f" {lines[i]}\n")
    return "".join(out)


def unified_overwrite(path: str, old_content: str, new_content: str) -> str:
    """Render a whole-file replacement as a single hunk starting at line 1."""
    old_lines = old_content.split("\n") if old_content else []
    new_lines = new_content.split("\n") if new_content else []

    out = _headers(path)
    out.append(f"@@ -1,{len(old_lines)} +1,{len(new_lines)} @@\n")
    out.extend(f"-{line}\n" for line in old_lines)
    out.extend(f"+{line}\n" for line in new_lines)
    return "".join(out)


def unified_error(path: str, message: str, old_str: str, new_str: str) -> str:
    """Stub diff carrying an explanatory note, for previews that cannot be computed."""
    return _stub(path, message, old_str, new_str)
