# CLI entry point: wires the change store, tools, backend and console into a session.

import pathlib
import sys
from typing import Optional

from dotenv import load_dotenv

from .changes import ChangeStore
from .client import OpenAIChatClient
from .config import DIFF_CONTEXT_LINES, MAX_ITERATIONS, MAX_RETRIES
from .console import ConsoleObserver
from .context import Context
from .errors import ChatClientError, ChatSessionError
from .gateway import ToolGateway
from .prompts import SystemPrompt
from .session import SessionOrchestrator
from .settings import load_settings

USAGE = "Usage: sahayak [--model MODEL] [--no-system-prompt | --system-prompt TEXT] [-v|--verbose] [repo_root]"


def _system_prompt(custom: Optional[str], disabled: bool, settings: dict) -> SystemPrompt:
    if disabled:
        return SystemPrompt.none()
    text = custom or settings.get("system_prompt")
    if text:
        return SystemPrompt.custom(str(text))
    return SystemPrompt.default()


def _int_setting(ctx: Context, key: str, default: int) -> int:
    """Read an integer setting, reporting and ignoring values that are not whole numbers."""
    value = ctx.settings.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        ctx.error_message(f"Ignoring settings.{key}={value!r}: expected an integer, using {default}")
        return default


def main() -> None:
    """
    Sahayak CLI entrypoint.

    Usage:
        sahayak [--model MODEL] [--no-system-prompt | --system-prompt TEXT] [-v|--verbose] [repo_root]

    Notes:
        - OPENAI_API_KEY must be set in the environment or in a .env file.
        - If repo_root is not supplied, the current directory is used.
    """
    args = sys.argv[1:]

    # Help handling (recognized anywhere in argv)
    if any(a in ("-h", "--help") for a in args):
        print(USAGE)
        print("Options:")
        print("  --model MODEL          OpenAI model id (default: AI_MODEL or settings.model)")
        print("  --system-prompt TEXT   Use TEXT as the system prompt")
        print("  --no-system-prompt     Start without a system prompt")
        print("  -v, --verbose          Print diagnostic log lines to stderr")
        print("Environment:")
        print("  OPENAI_API_KEY, AI_MODEL, OPENAI_BASE_URL, SAHAYAK_MAX_ITERATIONS, SAHAYAK_MAX_RETRIES,")
        print("  SAHAYAK_DIFF_CONTEXT, SAHAYAK_VERBOSE")
        return

    model: Optional[str] = None
    custom_prompt: Optional[str] = None
    no_prompt = False
    verbose: Optional[bool] = None
    repo_root_arg: Optional[str] = None
    i = 0
    while i < len(args):
        a = args[i]
        if a in ("--model", "--system-prompt"):
            if i + 1 >= len(args):
                print(f"error: {a} requires an argument")
                sys.exit(2)
            if a == "--model":
                model = args[i + 1]
            else:
                custom_prompt = args[i + 1]
            i += 2
            continue
        if a.startswith("--model="):
            model = a.split("=", 1)[1]
        elif a.startswith("--system-prompt="):
            custom_prompt = a.split("=", 1)[1]
        elif a == "--no-system-prompt":
            no_prompt = True
        elif a in ("-v", "--verbose"):
            verbose = True
        elif a.startswith("-"):
            print(f"error: unknown option: {a}")
            sys.exit(2)
        elif repo_root_arg is None:
            # First non-flag is repo_root
            repo_root_arg = a
        i += 1

    load_dotenv()
    repo_root = pathlib.Path(repo_root_arg).resolve() if repo_root_arg else pathlib.Path(".").resolve()
    settings = load_settings(repo_root)
    if verbose is None and "verbose" in settings:
        verbose = bool(settings["verbose"])
    ctx = Context(repo_root, settings=settings, verbose=verbose)

    try:
        client = OpenAIChatClient(model=model, settings=settings, ctx=ctx)
    except ChatClientError as e:
        ctx.error_message(f"{e}. Set OPENAI_API_KEY in the environment or a .env file.")
        sys.exit(1)

    changes = ChangeStore(repo_root, ctx=ctx)
    gateway = ToolGateway(changes, ctx=ctx, diff_context=_int_setting(ctx, "diff_context", DIFF_CONTEXT_LINES))
    observer = ConsoleObserver(ctx, gateway)
    gateway.attach(observer)
    session = SessionOrchestrator(
        client,
        gateway,
        observer,
        model=client.model,
        system_prompt=_system_prompt(custom_prompt, no_prompt, settings),
        max_iterations=_int_setting(ctx, "max_iterations", MAX_ITERATIONS),
        max_retries=_int_setting(ctx, "max_retries", MAX_RETRIES),
        ctx=ctx,
    )

    try:
        session.run()
    except ChatSessionError as e:
        ctx.error_message(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        ctx.send_to_user("\nInterrupted.")
        sys.exit(130)

    pending = changes.get_pending_changes()
    if pending:
        ctx.send_to_user(f"{len(pending)} staged change(s) were not accepted and have been discarded.")


if __name__ == "__main__":
    main()
