from __future__ import annotations

"""Streaming chat clients for OpenAI, Groq and Hugging Face."""

from dataclasses import dataclass
import json
import logging
from typing import AsyncIterator, Protocol

import httpx


class LLMError(RuntimeError):
    """Raised when LLM requests fail or responses are invalid."""
    pass


class ProviderNotConfiguredError(LLMError):
    """Raised when a provider is selected without its API key."""
    pass


logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    provider: str

    @property
    def model_label(self) -> str:
        ...

    def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        ...


@dataclass(frozen=True)
class OpenAICompatibleClient:
    """Chat completions client for OpenAI and OpenAI-compatible APIs (Groq).

    Models are tried in order; the next model is attempted only when the
    previous one failed before producing any output.
    """
    provider: str
    api_key: str
    base_url: str
    models: tuple[str, ...]
    temperature: float
    max_tokens: int
    timeout: float
    transport: httpx.AsyncBaseTransport | None = None

    @property
    def model_label(self) -> str:
        return self.models[0] if self.models else ""

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Yield content deltas from a streamed chat completion."""
        if not self.models:
            raise LLMError(f"No models configured for {self.provider}")
        headers = {"Authorization": f"Bearer {self.api_key}"}
        last_error: Exception | None = None
        for model in self.models:
            payload = {
                "model": model,
                "messages": messages,
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "stream": True,
            }
            emitted = False
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    async with client.stream(
                        "POST",
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers=headers,
                    ) as response:
                        if response.status_code >= 400:
                            await response.aread()
                            raise LLMError(
                                f"{self.provider} returned {response.status_code}: "
                                f"{_error_detail(response)}"
                            )
                        async for line in response.aiter_lines():
                            delta, finished = _parse_sse_line(line)
                            if finished:
                                break
                            if delta:
                                emitted = True
                                yield delta
                return
            except (httpx.HTTPError, LLMError) as exc:
                if emitted:
                    raise LLMError(f"{self.provider} stream interrupted: {exc}") from exc
                last_error = exc
                logger.warning(
                    "llm_model_failed",
                    extra={
                        "provider": self.provider,
                        "model": model,
                        "detail": type(exc).__name__,
                    },
                )
        raise LLMError(str(last_error) if last_error else f"All {self.provider} models failed")


@dataclass(frozen=True)
class HuggingFaceClient:
    """Text-generation client for the Hugging Face Inference API.

    The API answers in one piece; the text is re-emitted word by word so the
    caller can stream it like the other providers.
    """
    api_key: str
    base_url: str
    models: tuple[str, ...]
    temperature: float
    max_new_tokens: int
    timeout: float
    provider: str = "huggingface"
    transport: httpx.AsyncBaseTransport | None = None

    @property
    def model_label(self) -> str:
        return self.models[0] if self.models else ""

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        text = await self.generate(messages)
        words = text.split()
        for index, word in enumerate(words):
            yield word if index == len(words) - 1 else f"{word} "

    async def generate(self, messages: list[dict[str, str]]) -> str:
        prompt = _format_dialogue_prompt(messages)
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                "temperature": self.temperature,
                "return_full_text": False,
                "stop": ["Human:", "\n\n"],
            },
        }
        last_error: Exception | None = None
        for model in self.models:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.post(
                        f"{self.base_url}/{model}", json=payload, headers=headers
                    )
                    response.raise_for_status()
                    data = response.json()
                text = _extract_generated_text(data)
            except (httpx.HTTPError, ValueError, LLMError) as exc:
                last_error = exc
                logger.warning(
                    "llm_model_failed",
                    extra={"provider": self.provider, "model": model, "detail": type(exc).__name__},
                )
                continue
            if text:
                return text
            last_error = LLMError(f"Empty generation from {model}")
        raise LLMError(str(last_error) if last_error else "All huggingface models failed")


def _parse_sse_line(line: str) -> tuple[str, bool]:
    """Return (content delta, stream finished) for one SSE line."""
    line = line.strip()
    if not line or not line.startswith("data:"):
        return "", False
    data = line[len("data:") :].strip()
    if data == "[DONE]":
        return "", True
    try:
        event = json.loads(data)
    except json.JSONDecodeError as exc:
        raise LLMError("Invalid streaming chunk") from exc
    if not isinstance(event, dict):
        raise LLMError("Invalid streaming chunk")
    if event.get("error"):
        raise LLMError(str(event["error"]))
    choices = event.get("choices")
    if not choices:
        return "", False
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise LLMError("Invalid streaming chunk")
    delta = choices[0].get("delta") or {}
    if not isinstance(delta, dict):
        raise LLMError("Invalid streaming chunk")
    content = delta.get("content")
    return (content if isinstance(content, str) else ""), False


def _extract_generated_text(data: object) -> str:
    if isinstance(data, dict) and data.get("error"):
        raise LLMError(str(data["error"]))
    if isinstance(data, list) and data and isinstance(data[0], dict):
        text = data[0].get("generated_text")
    elif isinstance(data, dict):
        text = data.get("generated_text")
    else:
        text = None
    if not isinstance(text, str):
        raise LLMError("Invalid Hugging Face response")
    return text.strip()


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
    return response.text[:200]


def _format_dialogue_prompt(messages: list[dict[str, str]]) -> str:
    """Render chat messages as a Human/AI transcript for plain LMs."""
    lines: list[str] = []
    for item in messages:
        role = item.get("role", "user")
        content = item.get("content", "").strip()
        if not content:
            continue
        if role == "system":
            lines.append(content)
        elif role == "assistant":
            lines.append(f"AI: {content}")
        else:
            lines.append(f"Human: {content}")
    lines.append("AI: ")
    return "\n".join(lines)


def build_messages(
    system_prompt: str,
    message: str,
    history: list[dict[str, str]] | None = None,
) -> list[dict[str, str]]:
    """Build the provider message list: system, recent history, then the user turn."""
    messages = [{"role": "system", "content": system_prompt}]
    for item in history or []:
        role = item.get("role", "user").strip().lower()
        content = item.get("content", "").strip()
        if not content:
            continue
        if role not in {"user", "assistant"}:
            role = "user"
        messages.append({"role": role, "content": content})
    messages.append({"role": "user", "content": message})
    return messages


def build_chat_client(
    provider: str,
    *,
    openai_api_key: str | None,
    openai_base_url: str,
    openai_model: str,
    openai_temperature: float,
    openai_max_tokens: int,
    groq_api_key: str | None,
    groq_base_url: str,
    groq_models: tuple[str, ...],
    huggingface_api_key: str | None,
    huggingface_base_url: str,
    huggingface_models: tuple[str, ...],
    timeout: float,
) -> OpenAICompatibleClient | HuggingFaceClient:
    """Factory for chat clients based on provider."""
    normalized = provider.strip().lower()
    if normalized == "openai":
        if not openai_api_key:
            raise ProviderNotConfiguredError("OpenAI API key not configured")
        return OpenAICompatibleClient(
            provider="openai",
            api_key=openai_api_key,
            base_url=openai_base_url.rstrip("/"),
            models=(openai_model,),
            temperature=openai_temperature,
            max_tokens=openai_max_tokens,
            timeout=timeout,
        )
    if normalized == "groq":
        if not groq_api_key:
            raise ProviderNotConfiguredError(
                "Groq API key not configured. Get a free one at https://console.groq.com"
            )
        return OpenAICompatibleClient(
            provider="groq",
            api_key=groq_api_key,
            base_url=groq_base_url.rstrip("/"),
            models=groq_models,
            temperature=0.7,
            max_tokens=1000,
            timeout=timeout,
        )
    if normalized in {"huggingface", "hf"}:
        return HuggingFaceClient(
            api_key=huggingface_api_key or "",
            base_url=huggingface_base_url.rstrip("/"),
            models=huggingface_models,
            temperature=0.8,
            max_new_tokens=100,
            timeout=timeout,
        )
    raise LLMError(f"Unsupported chat provider: {provider}")
