from __future__ import annotations  # Chat-completion gateway for the interviewer model

import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableLambda

from config import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


def complete(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:  # Send role-tagged messages and return the completion text
    normalized = _normalize_messages(messages)
    if not normalized:
        raise ValueError("At least one chat message is required")
    payload: Dict[str, Any] = {
        "model": cfg.model,
        "messages": normalized,
        "max_tokens": cfg.max_tokens,
        "temperature": cfg.temperature,
        "stream": False,
    }
    if options:
        payload.update(options)
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            logger.warning("LLM api key env %s is not set; sending unauthenticated request", cfg.api_key_env)
    headers.update(cfg.extra_headers)

    preview = _preview(normalized)
    if len(preview) > 120:
        preview = preview[:117] + "..."
    logger.info(
        "LLM request send route=%s model=%s messages=%d preview=%s",
        cfg.name,
        cfg.model,
        len(normalized),
        preview,
    )
    try:
        response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure: %s", exc)
        raise LlmGatewayError("LLM transport failed") from exc
    try:
        if response.status_code >= 400:
            detail = "Invalid API key" if response.status_code == 401 else _truncate(response.text)
            logger.error("LLM error status: %s %s", response.status_code, detail)
            raise LlmGatewayError(f"LLM returned status {response.status_code}: {detail}")
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise LlmGatewayError("LLM payload was not JSON") from exc
    finally:
        _close_safely(close_cb)
    content = _extract_content(data)
    logger.info(
        "LLM request done route=%s model=%s chars=%d usage=%s",
        cfg.name,
        cfg.model,
        len(content),
        data.get("usage") if isinstance(data, dict) else None,
    )
    return content


def chat_model(route: LlmRoute, client: Optional[HttpClient] = None) -> Callable[[List[Dict[str, str]]], str]:  # Adapt route to the controller's chat callable
    return runnable(route, client=client).invoke


def runnable(route: LlmRoute, client: Optional[HttpClient] = None) -> RunnableLambda:  # Provide runnable interface for LangChain pipelines
    def _invoke(payload: Any) -> str:
        messages = _coerce_messages(payload)
        return complete(messages, cfg=route, client=client)

    return RunnableLambda(_invoke)


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, timeout=timeout)
        return response, None
    import httpx

    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # First non-empty line of the latest message
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _truncate(text: str, limit: int = 200) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str) and content.strip():
                return content.strip()
        if isinstance(data.get("content"), str) and data["content"].strip():
            return data["content"].strip()
    raise LlmGatewayError("No response from AI model")


def _coerce_messages(payload: Any) -> Sequence[Dict[str, str]]:  # Convert LangChain payloads into dict messages
    if hasattr(payload, "to_messages"):
        payload = payload.to_messages()
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, BaseMessage):
        return [_message_dict(payload)]
    if isinstance(payload, (list, tuple)):
        if all(isinstance(item, dict) for item in payload):
            return list(payload)  # type: ignore[return-value]
        if all(isinstance(item, BaseMessage) for item in payload):
            return [_message_dict(item) for item in payload]
    raise TypeError("Unsupported message payload for LLM runnable")


def _message_dict(message: BaseMessage) -> Dict[str, str]:  # Map LangChain BaseMessage to role/content dict
    role = message.type
    if role == "human":
        role = "user"
    elif role == "ai":
        role = "assistant"
    content = message.content
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"role": role, "content": content}
