# System prompt selection: none, the built-in default, or a custom text.

from importlib import resources
from typing import Optional

from .models import SystemMessage


def get_prompt(name: str, **kwargs) -> str:
    """
    Load a text prompt from the sahayak/resources directory.

    If kwargs are provided, apply str.format(**kwargs) to the content. Without
    kwargs the raw text is returned, so prompts may contain JSON braces.
    """
    data = resources.files("sahayak").joinpath("resources").joinpath(name).read_text(encoding="utf-8")
    if kwargs:
        return data.format(**kwargs)
    return data


class SystemPrompt:
    """Which system message, if any, opens a session's memory."""

    def __init__(self, text: Optional[str]) -> None:
        self.text = text

    @classmethod
    def none(cls) -> "SystemPrompt":
        return cls(None)

    @classmethod
    def default(cls) -> "SystemPrompt":
        return cls(get_prompt("system_prompt.txt"))

    @classmethod
    def custom(cls, text: str) -> "SystemPrompt":
        return cls(text)

    def message(self) -> Optional[SystemMessage]:
        if self.text is None:
            return None
        return SystemMessage(text=self.text)
