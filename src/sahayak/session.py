# Session orchestration: the turn loop, conversation memory and the backend retry policy.

from __future__ import annotations

from typing import List, Optional, Tuple

from .client import ChatBackend
from .config import AI_MODEL, MAX_ITERATIONS, MAX_RETRIES
from .context import Context
from .errors import (
    ChatSessionClientError,
    ChatSessionIOError,
    MaxIterationsExceeded,
    RetryKind,
    classify,
)
from .events import (
    APPROVED,
    AwaitingAssistantResponse,
    Event,
    InputRequest,
    Observer,
    ReceivedAssistantMessage,
    ReceivedToolCall,
    ReceivedToolResponse,
    ReceivedUserMessage,
    SessionEnded,
    SessionStarted,
    Status,
)
from .gateway import ToolGateway
from .models import (
    AssistantMessage,
    AssistantReply,
    Message,
    SystemMessage,
    ToolInvocation,
    ToolMessage,
    UserMessage,
)
from .prompts import SystemPrompt


class SessionOrchestrator:
    """
    Drives one conversation between the user, the model and the tools.

    Memory is append-only and owned here. The observer receives every
    lifecycle event and is asked for user input and tool approvals. A single
    call to send_message keeps talking to the backend until the model reports
    turn_over, bounded by max_iterations.
    """

    def __init__(
        self,
        backend: ChatBackend,
        gateway: ToolGateway,
        observer: Observer,
        model: str = AI_MODEL,
        system_prompt: Optional[SystemPrompt] = None,
        max_iterations: int = MAX_ITERATIONS,
        max_retries: int = MAX_RETRIES,
        ctx: Optional[Context] = None,
    ) -> None:
        self.backend = backend
        self.gateway = gateway
        self.observer = observer
        self.model = model
        self.max_iterations = max_iterations
        self.max_retries = max_retries
        self.ctx = ctx or gateway.ctx
        if gateway.observer is None:
            gateway.attach(observer)

        self._memory: List[Message] = []
        prompt = system_prompt.message() if system_prompt is not None else None
        if prompt is not None:
            self._memory.append(prompt)

    @property
    def memory(self) -> Tuple[Message, ...]:
        return tuple(self._memory)

    def _emit(self, event: Event) -> None:
        self.observer.on_event(event)

    # ---------- Turn loop ----------

    def send_message(self, text: str) -> str:
        """
        Process one user message until the model hands the turn back.

        Args:
            text: The user's message.

        Returns:
            The final assistant message of the turn.

        Raises:
            MaxIterationsExceeded: The backend was consulted max_iterations times without finishing.
            ChatSessionClientError: A fatal backend error, or transport errors past max_retries.
        """
        self._memory.append(UserMessage(text=text))
        self._emit(ReceivedUserMessage(message=text))

        iteration = 0
        while True:
            iteration += 1
            if iteration > self.max_iterations:
                raise MaxIterationsExceeded(self.max_iterations)

            self._emit(AwaitingAssistantResponse())
            try:
                result = self.backend.complete(self.model, list(self._memory), self.gateway.catalogue())
            except Exception as e:
                strategy = classify(e)
                kind = strategy.kind
                if kind == RetryKind.retryable and iteration > self.max_retries:
                    kind = RetryKind.fatal
                if kind == RetryKind.fatal:
                    self.ctx.log(f"Backend error is fatal: {e}")
                    raise ChatSessionClientError(e) from e
                if kind == RetryKind.retryable:
                    self.ctx.log(f"Backend error on iteration {iteration}, retrying: {e}")
                    continue
                self.ctx.log(f"Backend error fed back to the model: {e}")
                self._memory.append(SystemMessage(text=strategy.text))
                continue

            if isinstance(result, AssistantReply):
                self._memory.append(AssistantMessage(content=result.message))
                self._emit(ReceivedAssistantMessage(message=result.message))
                if result.turn_over:
                    return result.message
                continue

            self._memory.append(AssistantMessage(tool_calls=list(result.tool_calls)))
            for call in result.tool_calls:
                self._run_tool_call(call)

    def _run_tool_call(self, call: ToolInvocation) -> None:
        args = dict(call.arguments)
        self._emit(ReceivedToolCall(
            tool_name=call.name,
            parameters=args,
            status=Status.for_tool_call(call.name, args),
        ))

        approved = True
        text = ""
        if self.gateway.requires_approval(call.name):
            try:
                answer = self.observer.request_input(self.gateway.approval_request(call.name, args))
            except (OSError, EOFError) as e:
                approved = False
                text = f"Failed to request approval for {call.name}: {e}"
            else:
                approved = answer == APPROVED
                if not approved:
                    text = f"Operation cancelled by user: {call.name} with parameters {args}"

        if approved:
            text = self.gateway.dispatch(call.name, args).text

        self._memory.append(ToolMessage(text=text, call_id=call.id, tool_name=call.name))
        self._emit(ReceivedToolResponse(tool_name=call.name, response=text, parameters=args, approved=approved))

    # ---------- Session ----------

    def run(self) -> None:
        """
        Read user messages from the observer until it answers "exit".

        Errors from send_message end the session and propagate unchanged.

        Raises:
            ChatSessionIOError: The observer could not provide input.
        """
        self._emit(SessionStarted())
        while True:
            try:
                text = self.observer.request_input(InputRequest.user_input())
            except (OSError, EOFError) as e:
                raise ChatSessionIOError(f"Failed to read user input: {e}") from e
            if text == "exit":
                break
            self.send_message(text)
        self._emit(SessionEnded())

    def resolve_change(self, change_id: int, accept: bool) -> str:
        return self.gateway.resolve_change(change_id, accept)
