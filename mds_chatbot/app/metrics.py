from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from mds_chatbot.app.settings import settings

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
RETRIEVAL_COUNT = Counter(
    "rag_retrievals_total",
    "Keyword retrievals by outcome",
    ["outcome"],
)
CHAT_STREAM_COUNT = Counter(
    "chat_streams_total",
    "Chat streams by provider and final status",
    ["provider", "status"],
)


def record_retrieval(result_size: int) -> None:
    RETRIEVAL_COUNT.labels("hit" if result_size else "empty").inc()


def record_chat_stream(provider: str, status: str) -> None:
    CHAT_STREAM_COUNT.labels(provider, status).inc()


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled:
        return await call_next(request)
    path = request.url.path
    if path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        # Templated paths keep conversation IDs out of label values.
        label = getattr(request.scope.get("route"), "path", path)
        REQUEST_COUNT.labels(request.method, label, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, label).observe(duration)


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
