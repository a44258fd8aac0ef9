# Filesystem helpers: repo-relative reads and writes guarded against escaping the repo root.

import pathlib
from typing import List


def normalize_path(p: str) -> str:
    """Normalize a filesystem path to POSIX-style string (forward slashes)."""
    return str(pathlib.Path(p).as_posix())


def _safe_abs(repo_root: pathlib.Path, rel: str) -> pathlib.Path:
    """Resolve a repo-relative path and reject escapes outside repo_root."""
    root = pathlib.Path(repo_root).resolve()
    abs_path = (root / rel).resolve()
    try:
        abs_path.relative_to(root)
    except ValueError:
        raise ValueError(f"Path escapes repo root: {rel}")
    return abs_path


def read_file(repo_root: pathlib.Path, path: str) -> str:
    """Read a UTF-8 text file relative to repo_root."""
    abs_path = _safe_abs(repo_root, path)
    with abs_path.open("r", encoding="utf-8") as f:
        return f.read()


def write_file(repo_root: pathlib.Path, path: str, content: str) -> None:
    """Write text content to a repo-relative file, creating parent directories."""
    abs_path = _safe_abs(repo_root, path)
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    with abs_path.open("w", encoding="utf-8") as f:
        f.write(content)


def glob_repo_paths(repo_root: pathlib.Path, pattern: str) -> List[str]:
    """Return sorted repo-relative POSIX paths of files matching a glob, searched recursively."""
    root = pathlib.Path(repo_root).resolve()
    if pattern.startswith("**/") or "/" in pattern:
        matches = root.glob(pattern)
    else:
        matches = root.rglob(pattern)
    out: List[str] = []
    for p in matches:
        if not p.is_file():
            continue
        rel = p.relative_to(root)
        if ".git" in rel.parts:
            continue
        out.append(normalize_path(str(rel)))
    return sorted(out)


def count_lines(s: str) -> int:
    """Return the number of lines in a string, handling trailing newline gracefully."""
    if not s:
        return 0
    return s.count("\n") + (0 if s.endswith("\n") else 1)
