# Change staging: proposed file edits tracked as first-class entities with an accept/decline lifecycle.

from __future__ import annotations

import pathlib
import time
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from .context import Context
from .diff import unified_overwrite
from .fs import _safe_abs, count_lines, normalize_path, read_file, write_file
from .models import CustomBaseModel


class ChangeStoreError(Exception):
    """Raised for unknown change ids, non-pending changes and disk failures."""


class ChangeStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class PendingChange(CustomBaseModel):

    id: int = Field(..., description="Monotonic, 1-based change id")
    file_path: str = Field(..., description="Repo-relative path the change targets")
    original_content: str = Field(..., description="Effective content when the change was staged")
    new_content: str = Field(..., description="Full proposed content of the file")
    diff: str = Field(..., description="Preview computed once at creation")
    status: ChangeStatus = Field(default=ChangeStatus.pending)
    created_at: int = Field(..., description="Monotonic timestamp in nanoseconds")


class ChangeStore:
    """
    Owns every staged change and the per-path effective content cache.

    The effective content of a path is what the assistant perceives: disk
    content, overridden by the latest staged edit. Disk is only touched when a
    change is accepted. The change log is never pruned; resolved changes stay
    queryable by id.
    """

    def __init__(self, repo_root: pathlib.Path, ctx: Optional[Context] = None) -> None:
        self.repo_root = pathlib.Path(repo_root).resolve()
        self.ctx = ctx or Context(self.repo_root, verbose=False)
        self._changes: Dict[int, PendingChange] = {}
        self._effective: Dict[str, str] = {}
        self._next_id = 1
        self._last_ts = 0

    def _timestamp(self) -> int:
        # Strictly increasing even when the clock does not advance between calls.
        ts = max(time.monotonic_ns(), self._last_ts + 1)
        self._last_ts = ts
        return ts

    def _key(self, path: str) -> str:
        """Repo-relative POSIX key shared by every spelling of path."""
        p = normalize_path(path)
        try:
            return _safe_abs(self.repo_root, p).relative_to(self.repo_root).as_posix()
        except ValueError as e:
            raise ChangeStoreError(f"Error reading file '{p}': {e}")

    def _read_disk(self, path: str) -> str:
        try:
            return read_file(self.repo_root, path)
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise ChangeStoreError(f"Error reading file '{path}': {e}")

    # ---------- Reads ----------

    def read(self, path: str) -> str:
        """
        Return the effective content of path.

        Raises:
            FileNotFoundError: When nothing is staged for path and it does not exist on disk.
            ChangeStoreError: When the file exists but cannot be read.
        """
        p = self._key(path)
        if p in self._effective:
            return self._effective[p]
        try:
            return read_file(self.repo_root, p)
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise ChangeStoreError(f"Error reading file '{p}': {e}")

    def current_content(self, path: str) -> str:
        """Effective content of path; a file that does not exist reads as empty."""
        p = self._key(path)
        if p in self._effective:
            return self._effective[p]
        return self._read_disk(p)

    def get_change(self, change_id: int) -> Optional[PendingChange]:
        ch = self._changes.get(change_id)
        return ch.model_copy() if ch is not None else None

    def get_pending_changes(self) -> List[PendingChange]:
        pending = [c for c in self._changes.values() if c.status == ChangeStatus.pending]
        return [c.model_copy() for c in sorted(pending, key=lambda c: c.created_at)]

    def has_pending(self, path: str) -> bool:
        p = self._key(path)
        return any(c.file_path == p and c.status == ChangeStatus.pending for c in self._changes.values())

    # ---------- Mutations ----------

    def add_change(self, path: str, new_content: str, diff: Optional[str] = None) -> int:
        """
        Stage new_content for path and return the change id.

        The effective content of path switches to new_content immediately,
        before anything is written to disk. When diff is omitted a whole-file
        overwrite preview is rendered.
        """
        p = self._key(path)
        original = self.current_content(p)
        change_id = self._next_id
        self._next_id += 1
        self._changes[change_id] = PendingChange(
            id=change_id,
            file_path=p,
            original_content=original,
            new_content=new_content,
            diff=diff if diff is not None else unified_overwrite(p, original, new_content),
            created_at=self._timestamp(),
        )
        self._effective[p] = new_content
        self.ctx.log(f"Staged change {change_id} for {p} ({count_lines(new_content)} lines)")
        return change_id

    def accept_change(self, change_id: int) -> List[int]:
        """
        Accept a change together with every older pending change, in any file.

        Changes are written to disk oldest first. A write failure stops the
        batch; changes written before it stay written and accepted.

        Returns:
            The accepted ids in the order they were written, change_id last.

        Raises:
            ChangeStoreError: Unknown or already resolved id, or a failed write.
        """
        target = self._changes.get(change_id)
        if target is None:
            raise ChangeStoreError(f"Change {change_id} not found")
        if target.status != ChangeStatus.pending:
            raise ChangeStoreError(f"Change {change_id} is not pending")
        cutoff = target.created_at
        batch = sorted(
            (c for c in self._changes.values() if c.status == ChangeStatus.pending and c.created_at <= cutoff),
            key=lambda c: c.created_at,
        )
        accepted: List[int] = []
        for ch in batch:
            try:
                write_file(self.repo_root, ch.file_path, ch.new_content)
            except (OSError, ValueError) as e:
                raise ChangeStoreError(f"Failed to write file '{ch.file_path}': {e}")
            ch.status = ChangeStatus.accepted
            accepted.append(ch.id)
            self.ctx.log(f"Accepted change {ch.id}; wrote {ch.file_path}")
        return accepted

    def decline_change(self, change_id: int) -> None:
        """
        Decline a pending change and rebuild the effective content of its file.

        Disk is never written. The rebuilt view starts from disk, replays
        accepted snapshots for the file, then the remaining pending ones, each
        in creation order.
        """
        ch = self._changes.get(change_id)
        if ch is None:
            raise ChangeStoreError(f"Change {change_id} not found")
        if ch.status != ChangeStatus.pending:
            raise ChangeStoreError(f"Change {change_id} is not pending")
        ch.status = ChangeStatus.declined
        self.ctx.log(f"Declined change {change_id} for {ch.file_path}")

        content = self._read_disk(ch.file_path)
        same_file = sorted(
            (c for c in self._changes.values() if c.file_path == ch.file_path and c.status != ChangeStatus.declined),
            key=lambda c: c.created_at,
        )
        if not same_file:
            # Nothing left to overlay; reads go back to disk.
            self._effective.pop(ch.file_path, None)
            return
        # Entries are full snapshots, so each replay replaces the running content.
        for c in same_file:
            if c.status == ChangeStatus.accepted:
                content = c.new_content
        for c in same_file:
            if c.status == ChangeStatus.pending:
                content = c.new_content
        self._effective[ch.file_path] = content
