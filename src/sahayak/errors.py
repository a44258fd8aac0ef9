# Backend error taxonomy, retry classification and session-level errors.

from __future__ import annotations

from enum import Enum
from typing import Optional


class RetryKind(str, Enum):
    fatal = "fatal"
    retryable = "retryable"
    add_to_memory_and_retry = "add_to_memory_and_retry"


class RetryStrategy:
    """How the session reacts to a backend error. Derived per error, never stored."""

    def __init__(self, kind: RetryKind, text: Optional[str] = None) -> None:
        self.kind = kind
        self.text = text

    @classmethod
    def fatal(cls) -> "RetryStrategy":
        return cls(RetryKind.fatal)

    @classmethod
    def retryable(cls) -> "RetryStrategy":
        return cls(RetryKind.retryable)

    @classmethod
    def add_to_memory(cls, error: Exception) -> "RetryStrategy":
        return cls(
            RetryKind.add_to_memory_and_retry,
            f"An error occurred: {error}. Please try again with a different approach.",
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RetryStrategy):
            return NotImplemented
        return self.kind == other.kind and self.text == other.text

    def __repr__(self) -> str:
        if self.text is None:
            return f"RetryStrategy({self.kind.value})"
        return f"RetryStrategy({self.kind.value}, {self.text!r})"


# -----------------------------
# Backend errors
# -----------------------------

class ChatClientError(Exception):
    """Base class for every error a chat backend can raise."""

    message = "Chat client error"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(self.render())

    def render(self) -> str:
        return self.message

    def retry_strategy(self) -> RetryStrategy:
        return RetryStrategy.add_to_memory(self)


class _FatalError(ChatClientError):
    def retry_strategy(self) -> RetryStrategy:
        return RetryStrategy.fatal()


class _TransportError(ChatClientError):
    def retry_strategy(self) -> RetryStrategy:
        return RetryStrategy.retryable()


class InvalidModel(_FatalError):
    message = "Invalid model"


class EmptyChatHistory(_FatalError):
    message = "Chat history cannot be empty"


class InvalidApiKey(_FatalError):
    message = "Invalid API key"


class MissingApiKey(_FatalError):
    message = "Missing API key"


class InsufficientCredits(_FatalError):
    message = "Not enough credits"


class RateLimitExceeded(_TransportError):
    message = "Rate limit exceeded"


class ServiceUnavailable(_TransportError):
    message = "Service unavailable"


class HttpError(_TransportError):
    message = "HTTP request failed"

    def render(self) -> str:
        return f"HTTP request failed: {self.detail}"


class InvalidChatMessageRequest(ChatClientError):
    message = "Invalid chat message request"


class OtherError(ChatClientError):
    message = "Other error"

    def render(self) -> str:
        return f"Other error: {self.detail}"


# Provider-specific content and parsing errors. All are fed back to the model.

class OpenAIError(ChatClientError):
    message = "OpenAI error"

    def render(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class NoCompletionFound(OpenAIError):
    message = "No completion found in response"


class NoChoicesFound(OpenAIError):
    message = "No choices found in response"


class NoContentFound(OpenAIError):
    message = "No content or tool calls found in response"


class InvalidToolCallArguments(OpenAIError):
    message = "Invalid tool call arguments"


class InvalidContentResponse(OpenAIError):
    message = "Invalid content response"


def classify(error: Exception) -> RetryStrategy:
    """Map any error raised by a backend to a retry strategy; unknown errors are fed back to the model."""
    if isinstance(error, ChatClientError):
        return error.retry_strategy()
    return RetryStrategy.add_to_memory(error)


# -----------------------------
# Session errors
# -----------------------------

class ChatSessionError(Exception):
    """Terminal error of a session call."""


class MaxIterationsExceeded(ChatSessionError):
    def __init__(self, cap: int) -> None:
        self.cap = cap
        super().__init__(f"Maximum iterations ({cap}) exceeded")


class ChatSessionClientError(ChatSessionError):
    """A fatal backend error, or a retryable one that ran out of retries."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        super().__init__(f"Chat client error: {error}")


class ChatSessionIOError(ChatSessionError):
    """The observer failed to provide user input."""
