# Chat backend interface and the OpenAI Chat Completions implementation over requests.

import json
import os
from copy import deepcopy
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests
from pydantic import ValidationError

from .config import AI_MODEL, HTTP_TIMEOUT, MAX_COMPLETION_TOKENS, OPENAI_BASE_URL
from .context import Context
from .errors import (
    EmptyChatHistory,
    HttpError,
    InsufficientCredits,
    InvalidApiKey,
    InvalidChatMessageRequest,
    InvalidContentResponse,
    InvalidModel,
    InvalidToolCallArguments,
    MissingApiKey,
    NoChoicesFound,
    NoCompletionFound,
    NoContentFound,
    OtherError,
    RateLimitExceeded,
    ServiceUnavailable,
)
from .models import (
    AssistantMessage,
    AssistantReply,
    ChatResult,
    Message,
    StructuredReply,
    SystemMessage,
    ToolCallsReply,
    ToolInvocation,
    ToolMessage,
    UserMessage,
)


class ChatBackend(Protocol):
    """Anything that can turn a conversation into the next assistant reply."""

    def complete(self, model: str, history: Sequence[Message], tools: List[Dict[str, Any]]) -> ChatResult:
        ...


def _preprocess_for_openai(schema: dict) -> dict:
    """
    Prepare a JSON Schema for OpenAI strict validation:
    - If a node has "$ref", remove all sibling keys and keep only the $ref.
    - For any object node that defines "properties", require every property
      and set "additionalProperties" to False.
    The transformation is applied recursively across the schema tree.
    """
    cleaned = deepcopy(schema)

    def _walk(node: Any) -> None:
        if isinstance(node, dict):
            if "$ref" in node:
                for k in list(node.keys()):
                    if k != "$ref":
                        node.pop(k, None)
                return
            props = node.get("properties")
            if isinstance(props, dict):
                node["required"] = sorted(set(props.keys()) | set(node.get("required") or []))
                node["additionalProperties"] = False
            for v in list(node.values()):
                _walk(v)
        elif isinstance(node, list):
            for item in node:
                _walk(item)

    _walk(cleaned)
    return cleaned


def to_wire(message: Message) -> Dict[str, Any]:
    """Convert a memory entry to a Chat Completions message."""
    if isinstance(message, SystemMessage):
        return {"role": "system", "content": message.text}
    if isinstance(message, UserMessage):
        return {"role": "user", "content": message.text}
    if isinstance(message, ToolMessage):
        return {"role": "tool", "content": message.text, "tool_call_id": message.call_id}
    if isinstance(message, AssistantMessage):
        if message.tool_calls is None:
            return {"role": "assistant", "content": message.content}
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": json.dumps(tc.arguments, ensure_ascii=False)},
                }
                for tc in message.tool_calls
            ],
        }
    raise TypeError(f"unsupported message type: {type(message).__name__}")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def parse_tool_arguments(raw: Any) -> Dict[str, str]:
    """Decode tool-call arguments into a flat str -> str mapping."""
    if isinstance(raw, dict):
        obj = raw
    else:
        try:
            obj = json.loads(raw or "{}")
        except (TypeError, ValueError) as e:
            raise InvalidToolCallArguments(str(e))
    if not isinstance(obj, dict):
        raise InvalidToolCallArguments("arguments must be a JSON object")
    return {str(k): _stringify(v) for k, v in obj.items() if v is not None}


def parse_completion(body: Any) -> ChatResult:
    """
    Normalize a Chat Completions response body into a ChatResult.

    Raises:
        NoChoicesFound, NoContentFound, InvalidContentResponse,
        InvalidToolCallArguments: The body cannot be turned into a reply.
    """
    choices = body.get("choices") if isinstance(body, dict) else None
    if not choices or not isinstance(choices, list):
        raise NoChoicesFound()
    msg = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(msg, dict):
        raise NoContentFound()

    tool_calls = msg.get("tool_calls") or []
    if tool_calls:
        invocations: List[ToolInvocation] = []
        for tc in tool_calls:
            fn = (tc or {}).get("function") or {}
            invocations.append(ToolInvocation(
                id=str(tc.get("id") or ""),
                name=str(fn.get("name") or ""),
                arguments=parse_tool_arguments(fn.get("arguments")),
            ))
        return ToolCallsReply(tool_calls=invocations)

    content = msg.get("content")
    if not content:
        raise NoContentFound()
    try:
        reply = StructuredReply.model_validate_json(content)
    except ValidationError as e:
        raise InvalidContentResponse(f"{e.error_count()} validation error(s) in {content[:200]!r}")
    return AssistantReply(message=reply.message, turn_over=reply.turn_over)


_STATUS_ERRORS = {
    400: InvalidChatMessageRequest,
    401: InvalidApiKey,
    403: InsufficientCredits,
    404: InvalidModel,
    429: RateLimitExceeded,
    500: ServiceUnavailable,
    502: ServiceUnavailable,
    503: ServiceUnavailable,
}


class OpenAIChatClient:
    """
    Minimal HTTP client for OpenAI's Chat Completions API.

    Every call asks for a strict json_schema reply of the form
    {"message": str, "turn_over": bool}, unless the model answers with tool
    calls. Errors are raised as ChatClientError subclasses; retrying is left
    to the session.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
        ctx: Optional[Context] = None,
        session: Optional[requests.Session] = None,
        timeout: int = HTTP_TIMEOUT,
    ) -> None:
        """
        Resolve credentials and endpoint.

        Precedence, highest first: constructor args, settings, environment.
        The API key is never read from settings, only from args or OPENAI_API_KEY.

        Raises:
            MissingApiKey: No API key anywhere.
        """
        settings = settings if isinstance(settings, dict) else {}
        resolved_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_key:
            raise MissingApiKey()
        self.model = model or settings.get("model") or os.environ.get("AI_MODEL") or AI_MODEL
        base = (base_url or settings.get("base_url") or os.environ.get("OPENAI_BASE_URL") or OPENAI_BASE_URL).rstrip("/")
        if not base.endswith("/v1"):
            base = f"{base}/v1"
        self.base_url = base
        self.ctx = ctx or Context(verbose=False)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {resolved_key}",
            "Content-Type": "application/json",
        })

    def _payload(self, model: str, history: Sequence[Message], tools: List[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [to_wire(m) for m in history],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "structured_chat_response",
                    "schema": _preprocess_for_openai(StructuredReply.model_json_schema()),
                    "strict": True,
                },
            },
            "max_completion_tokens": MAX_COMPLETION_TOKENS,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        return payload

    def _log_usage(self, body: Dict[str, Any]) -> None:
        usage = body.get("usage") or {}
        if not isinstance(usage, dict):
            return
        self.ctx.log(
            f"OpenAI usage: prompt_tokens={usage.get('prompt_tokens', 0)}, "
            f"completion_tokens={usage.get('completion_tokens', 0)}"
        )

    def complete(self, model: str, history: Sequence[Message], tools: List[Dict[str, Any]]) -> ChatResult:
        """
        Send the conversation and return the next assistant reply.

        Args:
            model: Model id; falls back to the client's default when empty.
            history: Full conversation memory, oldest first.
            tools: Function specs the model may call.

        Returns:
            AssistantReply or ToolCallsReply.

        Raises:
            EmptyChatHistory: history is empty; nothing is sent.
            ChatClientError: Any HTTP, transport or parsing failure.
        """
        if not history:
            raise EmptyChatHistory()
        url = f"{self.base_url}/chat/completions"
        payload = self._payload(model or self.model, history, tools)
        self.ctx.log(f"POST {url} ({len(history)} messages, {len(tools)} tools)")
        try:
            r = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise HttpError(str(e))

        if r.status_code != 200:
            self.ctx.log(f"Chat Completions error {r.status_code}: {r.text[:2000]}")
            err = _STATUS_ERRORS.get(r.status_code)
            if err is not None:
                raise err()
            raise OtherError(f"Unexpected HTTP status: {r.status_code}")

        try:
            body = r.json()
        except ValueError as e:
            raise NoCompletionFound(str(e))
        if isinstance(body, dict):
            self._log_usage(body)
        return parse_completion(body)
