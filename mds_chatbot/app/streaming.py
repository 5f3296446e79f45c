from __future__ import annotations

"""Server-Sent-Events framing for streamed chat responses."""

import json
import logging
from typing import Any, AsyncIterator

from fastapi.responses import StreamingResponse

from mds_chatbot.app.metrics import record_chat_stream
from mds_chatbot.rag.llm import ChatClient, LLMError

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def encode_event(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def friendly_error(exc: Exception) -> str:
    """Map a provider failure to a message safe to show in the chat window."""
    text = str(exc).lower()
    if "api key" in text or "401" in text or "unauthorized" in text:
        return "Invalid API key. Please check the provider configuration."
    if "rate limit" in text or "429" in text:
        return "Rate limit exceeded. Please wait a moment and try again."
    if "quota" in text:
        return "API quota exceeded. Please check your plan and billing details."
    return "Failed to get a response from the AI provider. Please try again."


async def sse_chat_events(
    client: ChatClient,
    messages: list[dict[str, str]],
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AsyncIterator[str]:
    """Relay provider deltas as events, ending with one ``done`` event."""
    extra = dict(metadata or {})
    response_length = 0
    try:
        async for delta in client.stream(messages):
            if not delta:
                continue
            response_length += len(delta)
            yield encode_event({"content": delta, "done": False})
    except LLMError as exc:
        logger.warning(
            "chat_stream_failed",
            extra={
                "request_id": request_id,
                "provider": client.provider,
                "error": type(exc).__name__,
                "detail": str(exc),
            },
        )
        record_chat_stream(client.provider, "error")
        yield encode_event({"content": "", "done": True, "error": friendly_error(exc)})
        return
    record_chat_stream(client.provider, "ok")
    logger.info(
        "chat_stream_complete",
        extra={
            "request_id": request_id,
            "provider": client.provider,
            "response_length": response_length,
        },
    )
    extra.update({"model": client.model_label, "response_length": response_length})
    yield encode_event({"content": "", "done": True, "metadata": extra})


def sse_response(events: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(events, media_type="text/event-stream", headers=SSE_HEADERS)
