# Console I/O and logging context shared by the CLI and the core components.

import pathlib
import sys
from typing import Any, Dict, Optional

from .config import VERBOSE


class Context:
    """
    Thin wrapper around console I/O and logging used by Sahayak.

    Business logic never prints directly; it goes through a Context so that
    tests can run quiet and the CLI can decide how chatty to be.
    """

    def __init__(
        self,
        repo_root: Optional[pathlib.Path] = None,
        settings: Optional[Dict[str, Any]] = None,
        verbose: Optional[bool] = None,
    ) -> None:
        self.repo_root = pathlib.Path(repo_root or ".").resolve()
        self.settings = settings or {}
        self.verbose = VERBOSE if verbose is None else verbose

    def send_to_user(self, message: str) -> None:
        """Send a user-facing message to stdout."""
        print(message)

    def log(self, message: str) -> None:
        """Emit a diagnostic line to stderr when verbose logging is on."""
        if self.verbose:
            print(f"[LOG] {message}", file=sys.stderr)

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def prompt(self, label: str) -> str:
        """Read one line from stdin. EOFError propagates to the caller."""
        return input(label)
