from __future__ import annotations

import json

import httpx
import pytest

from mds_chatbot.app.streaming import sse_chat_events
from mds_chatbot.rag.llm import (
    HuggingFaceClient,
    LLMError,
    OpenAICompatibleClient,
    ProviderNotConfiguredError,
    _parse_sse_line,
    build_chat_client,
    build_messages,
)

pytestmark = pytest.mark.anyio


def _sse_body(*deltas: str) -> bytes:
    lines = [
        "data: " + json.dumps({"choices": [{"delta": {"content": delta}}]}) for delta in deltas
    ]
    lines.append("data: [DONE]")
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


def _openai_client(handler, models: tuple[str, ...] = ("model-a",)) -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        provider="groq",
        api_key="test-key",
        base_url="https://llm.test/v1",
        models=models,
        temperature=0.7,
        max_tokens=100,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


async def _collect(stream) -> list[str]:
    return [delta async for delta in stream]


async def test_stream_parses_sse_deltas() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=_sse_body("Hel", "lo", ""))

    client = _openai_client(handler)
    deltas = await _collect(client.stream([{"role": "user", "content": "hi"}]))
    assert deltas == ["Hel", "lo"]
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["stream"] is True
    assert seen["body"]["model"] == "model-a"


async def test_falls_back_to_next_model_before_output() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        model = json.loads(request.content)["model"]
        requested.append(model)
        if model == "model-a":
            return httpx.Response(503, json={"error": {"message": "overloaded"}})
        return httpx.Response(200, content=_sse_body("ok"))

    client = _openai_client(handler, models=("model-a", "model-b"))
    assert await _collect(client.stream([{"role": "user", "content": "hi"}])) == ["ok"]
    assert requested == ["model-a", "model-b"]


async def test_all_models_failing_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "rate limit reached"}})

    client = _openai_client(handler, models=("model-a", "model-b"))
    with pytest.raises(LLMError, match="rate limit"):
        await _collect(client.stream([{"role": "user", "content": "hi"}]))


async def test_huggingface_streams_words() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        assert payload["inputs"].endswith("Human: hello\nAI: ")
        assert payload["parameters"]["return_full_text"] is False
        return httpx.Response(200, json=[{"generated_text": " Hi there friend "}])

    client = HuggingFaceClient(
        api_key="",
        base_url="https://hf.test/models",
        models=("gpt2",),
        temperature=0.8,
        max_new_tokens=50,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )
    messages = build_messages("Be brief.", "hello")
    assert await _collect(client.stream(messages)) == ["Hi ", "there ", "friend"]


async def test_huggingface_skips_failing_models() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/broken"):
            return httpx.Response(500, json={"error": "loading"})
        return httpx.Response(200, json={"generated_text": "fine"})

    client = HuggingFaceClient(
        api_key="hf",
        base_url="https://hf.test/models",
        models=("broken", "working"),
        temperature=0.8,
        max_new_tokens=50,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )
    assert await client.generate([{"role": "user", "content": "x"}]) == "fine"


def test_build_messages_orders_history() -> None:
    messages = build_messages(
        "system",
        "latest",
        [{"role": "user", "content": "q1"}, {"role": "assistant", "content": " "}],
    )
    assert messages == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "q1"},
        {"role": "user", "content": "latest"},
    ]


def test_factory_requires_keys_for_paid_providers() -> None:
    kwargs = dict(
        openai_api_key=None,
        openai_base_url="https://api.openai.com/v1",
        openai_model="gpt-4o-mini",
        openai_temperature=0.7,
        openai_max_tokens=1000,
        groq_api_key=None,
        groq_base_url="https://api.groq.com/openai/v1",
        groq_models=("llama",),
        huggingface_api_key=None,
        huggingface_base_url="https://hf.test/models",
        huggingface_models=("gpt2",),
        timeout=5.0,
    )
    with pytest.raises(ProviderNotConfiguredError):
        build_chat_client("openai", **kwargs)
    with pytest.raises(ProviderNotConfiguredError):
        build_chat_client("groq", **kwargs)
    assert build_chat_client("huggingface", **kwargs).provider == "huggingface"
    with pytest.raises(LLMError):
        build_chat_client("unknown", **kwargs)


@pytest.mark.parametrize(
    "payload",
    ['{"choices": ["x"]}', '{"choices": [{"delta": "x"}]}', '{"choices": "x"}', '["x"]'],
)
def test_malformed_chunk_raises_llm_error(payload: str) -> None:
    with pytest.raises(LLMError, match="Invalid streaming chunk"):
        _parse_sse_line(f"data: {payload}")


async def test_malformed_stream_ends_with_error_event() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'data: {"choices": [{"delta": "x"}]}\n\n')

    client = _openai_client(handler)
    body = "".join(
        [event async for event in sse_chat_events(client, [{"role": "user", "content": "hi"}])]
    )
    events = [json.loads(line[len("data: ") :]) for line in body.splitlines() if line]
    assert len(events) == 1
    assert events[0]["done"] is True
    assert events[0]["error"]
