from __future__ import annotations

"""FastAPI application entrypoint for the chat proxy and document Q&A service."""

import hashlib
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response

from mds_chatbot.app.dependencies import get_chat_client, get_conversation_store, get_rag_store
from mds_chatbot.app.environment import environment_status
from mds_chatbot.app.metrics import metrics_middleware, metrics_response, record_retrieval
from mds_chatbot.app.schemas import (
    ChatRequest,
    ChunkMetadataOut,
    ChunkOut,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationOut,
    ConversationSummaryOut,
    ConversationUpdateRequest,
    DeleteResponse,
    EnvironmentStatusResponse,
    ImportValidationResponse,
    MessageIn,
    MessageOut,
    RAGFallbackResponse,
    RAGStatusResponse,
    SearchRequest,
    SearchResponse,
    TopicResponse,
)
from mds_chatbot.app.security import UserContext, get_user_context, require_authenticated
from mds_chatbot.app.settings import settings
from mds_chatbot.app.streaming import sse_chat_events, sse_response
from mds_chatbot.conversations.export import (
    export_conversation_markdown,
    export_conversations,
    export_filename,
    markdown_filename,
    validate_import_data,
)
from mds_chatbot.conversations.store import (
    DEFAULT_PROVIDER,
    Conversation,
    ConversationStore,
    ConversationStoreError,
    ConversationUpdate,
    InvalidConversationId,
    Message,
    generate_title,
)
from mds_chatbot.loaders.source import DocumentLoadError
from mds_chatbot.rag.context import assemble_context
from mds_chatbot.rag.llm import LLMError, ProviderNotConfiguredError, build_messages
from mds_chatbot.rag.prompts import (
    GENERAL_SYSTEM_PROMPT,
    rag_assistant_prompt,
    rag_representative_prompt,
)
from mds_chatbot.rag.types import DocumentChunk, RetrievalResult

logger = logging.getLogger(__name__)

app = FastAPI(title="MDS Chatbot", version="0.1.0")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _require_message(chat: ChatRequest) -> str:
    message = chat.message.strip()
    if not message:
        raise HTTPException(status_code=422, detail="Message is required")
    return message


def _slice_history(chat: ChatRequest) -> list[dict[str, str]]:
    """Keep the most recent turns within the configured window."""
    max_messages = max(settings.chat_history_turns, 0) * 2
    history = chat.history[-max_messages:] if max_messages else []
    return [{"role": item.role, "content": item.content} for item in history]


def _client_or_503(provider: str):
    try:
        return get_chat_client(provider)
    except ProviderNotConfiguredError as exc:
        logger.warning("chat_provider_not_configured", extra={"provider": provider})
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except LLMError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _retrieve(query: str, top_k: int | None = None) -> RetrievalResult:
    store = get_rag_store()
    try:
        result = store.retrieve(query, top_k=top_k)
    except DocumentLoadError as exc:
        raise HTTPException(status_code=503, detail=f"Document index unavailable: {exc}") from exc
    record_retrieval(len(result.chunks))
    return result


def _retrieve_context(query: str, request_id: str) -> tuple[str, RetrievalResult]:
    result = _retrieve(query)
    fallback = get_rag_store().contact.fallback_message()
    context = assemble_context(result.chunks, fallback=fallback)
    logger.info(
        "rag_context_built",
        extra={
            "request_id": request_id,
            "query_hash": hashlib.sha256(query.encode("utf-8")).hexdigest(),
            "chunks": len(result.chunks),
            "context_length": len(context),
        },
    )
    return context, result


def _chunk_out(chunk: DocumentChunk, score: float | None = None) -> ChunkOut:
    meta = chunk.metadata
    return ChunkOut(
        id=chunk.id,
        content=chunk.content,
        metadata=ChunkMetadataOut(
            source=meta.source,
            chunk_index=meta.chunk_index,
            total_chunks=meta.total_chunks,
            word_count=meta.word_count,
        ),
        score=score,
    )


def _require_conversation_store() -> ConversationStore:
    store = get_conversation_store()
    if store is None:
        raise HTTPException(status_code=503, detail="Conversation storage is not configured")
    return store


def _to_messages(items: list[MessageIn]) -> list[Message]:
    now = datetime.now(timezone.utc)
    return [
        Message(id=item.id, role=item.role, content=item.content, timestamp=item.timestamp or now)
        for item in items
    ]


def _conversation_out(conversation: Conversation, is_guest: bool = False) -> ConversationOut:
    return ConversationOut(
        id=conversation.id,
        title=conversation.title,
        messages=[
            MessageOut(
                id=message.id,
                role=message.role,
                content=message.content,
                timestamp=message.timestamp,
            )
            for message in conversation.messages
        ],
        ai_provider=conversation.ai_provider,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        is_guest=is_guest,
    )


def _conversation_or_404(
    store: ConversationStore, user_id: str, conversation_id: str
) -> Conversation:
    try:
        conversation = store.get(user_id, conversation_id)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health probe for uptime checks."""
    return {"status": "ok"}


@app.get("/api/status", response_model=EnvironmentStatusResponse)
async def api_status() -> EnvironmentStatusResponse:
    """Report which providers and optional services are configured."""
    status = environment_status()
    return EnvironmentStatusResponse(
        has_auth=status.has_auth,
        has_database=status.has_database,
        available_providers=status.available_providers,
        required_missing=status.required_missing,
        errors=status.errors,
        warnings=status.warnings,
        is_configured=status.is_configured,
    )


@app.post("/api/chat")
async def chat(chat_request: ChatRequest, request: Request):
    """Stream an OpenAI chat completion."""
    message = _require_message(chat_request)
    client = _client_or_503("openai")
    messages = build_messages(GENERAL_SYSTEM_PROMPT, message, _slice_history(chat_request))
    logger.info(
        "chat_received",
        extra={"request_id": _request_id(request), "provider": client.provider},
    )
    return sse_response(
        sse_chat_events(client, messages, {"provider": "openai"}, _request_id(request))
    )


@app.post("/api/chat-groq")
async def chat_groq(chat_request: ChatRequest, request: Request):
    """Stream a Groq chat completion with model fallback."""
    message = _require_message(chat_request)
    client = _client_or_503("groq")
    messages = build_messages(GENERAL_SYSTEM_PROMPT, message, _slice_history(chat_request))
    logger.info(
        "chat_received",
        extra={"request_id": _request_id(request), "provider": client.provider},
    )
    return sse_response(
        sse_chat_events(client, messages, {"provider": "groq"}, _request_id(request))
    )


@app.post("/api/chat-free")
async def chat_free(chat_request: ChatRequest, request: Request):
    """Stream a Hugging Face generation word by word."""
    message = _require_message(chat_request)
    client = _client_or_503("huggingface")
    messages = build_messages(GENERAL_SYSTEM_PROMPT, message, _slice_history(chat_request))
    logger.info(
        "chat_received",
        extra={"request_id": _request_id(request), "provider": client.provider},
    )
    return sse_response(
        sse_chat_events(client, messages, {"provider": "huggingface"}, _request_id(request))
    )


@app.post("/api/chat-rag-simple")
async def chat_rag_simple(chat_request: ChatRequest, request: Request):
    """Answer from keyword-retrieved context, streamed through OpenAI.

    Without an OpenAI key the retrieved context itself is returned as JSON.
    """
    message = _require_message(chat_request)
    request_id = _request_id(request)
    context, result = _retrieve_context(message, request_id)
    organization = settings.organization_name
    metadata = {
        "provider": "simple-rag-openai",
        "context_used": bool(result.chunks),
        "context_length": len(context),
        "chunk_count": len(result.chunks),
    }
    if not settings.openai_api_key:
        return RAGFallbackResponse(
            content=f"Based on {organization} documents:\n\n{context}",
            done=True,
            metadata={**metadata, "provider": "simple-rag", "using_fallback": True},
        )
    client = _client_or_503("openai")
    messages = build_messages(rag_assistant_prompt(organization, context), message)
    return sse_response(sse_chat_events(client, messages, metadata, request_id))


@app.post("/api/chat-rag-groq")
async def chat_rag_groq(chat_request: ChatRequest, request: Request):
    """Answer as the organization's representative, streamed through Groq."""
    message = _require_message(chat_request)
    request_id = _request_id(request)
    client = _client_or_503("groq")
    context, result = _retrieve_context(message, request_id)
    system_prompt = rag_representative_prompt(settings.organization_name, context)
    messages = build_messages(system_prompt, message, _slice_history(chat_request))
    metadata = {
        "provider": "rag-groq",
        "context_used": bool(result.chunks),
        "context_length": len(context),
        "chunk_count": len(result.chunks),
    }
    return sse_response(sse_chat_events(client, messages, metadata, request_id))


@app.get("/api/rag/status", response_model=RAGStatusResponse)
async def rag_status() -> RAGStatusResponse:
    """Return readiness and chunk statistics, loading the document if needed."""
    store = get_rag_store()
    try:
        store.initialize()
    except DocumentLoadError as exc:
        raise HTTPException(status_code=503, detail=f"Document index unavailable: {exc}") from exc
    stats = store.stats()
    return RAGStatusResponse(**stats, document_path=str(settings.document_path))


@app.post("/api/rag/search", response_model=SearchResponse)
async def rag_search(search: SearchRequest) -> SearchResponse:
    """Return ranked chunks for a query, optionally with per-rule scores."""
    result = _retrieve(search.query, top_k=search.top_k)
    store = get_rag_store()
    chunks = []
    for chunk, score in zip(result.chunks, result.scores):
        item = _chunk_out(chunk, score)
        if search.explain:
            item.breakdown = store.scorer.explain(search.query, chunk.content)
        chunks.append(item)
    context = assemble_context(
        result.chunks, fallback=store.contact.fallback_message(), labeled=True
    )
    return SearchResponse(
        query=search.query,
        chunks=chunks,
        scores=list(result.scores),
        context=context,
    )


@app.get("/api/rag/topics/{topic}", response_model=TopicResponse)
async def rag_topic(topic: str, top_k: int = Query(default=5, ge=1, le=20)) -> TopicResponse:
    store = get_rag_store()
    try:
        chunks = store.search_by_topic(topic, top_k=top_k)
    except DocumentLoadError as exc:
        raise HTTPException(status_code=503, detail=f"Document index unavailable: {exc}") from exc
    return TopicResponse(topic=topic, chunks=[_chunk_out(chunk) for chunk in chunks])


@app.get("/api/rag/context")
async def rag_context(query: str = Query(min_length=1)) -> dict[str, object]:
    """Preview the context a chat request with this query would receive."""
    store = get_rag_store()
    try:
        context = store.get_context(query)
    except DocumentLoadError as exc:
        raise HTTPException(status_code=503, detail=f"Document index unavailable: {exc}") from exc
    return {"query": query, "context": context, "contact_info": store.contact_info()}


@app.post("/api/rag/reinitialize", response_model=RAGStatusResponse)
async def rag_reinitialize(
    user: UserContext = Depends(get_user_context),
) -> RAGStatusResponse:
    """Reload the source document; signed-in users only."""
    user_id = require_authenticated(user)
    store = get_rag_store()
    started = time.monotonic()
    try:
        store.reinitialize()
    except DocumentLoadError as exc:
        raise HTTPException(status_code=503, detail=f"Document index unavailable: {exc}") from exc
    logger.info(
        "keyword_store_reinitialized",
        extra={
            "actor": hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:16],
            "duration_ms": int((time.monotonic() - started) * 1000),
        },
    )
    return RAGStatusResponse(**store.stats(), document_path=str(settings.document_path))


@app.post("/api/conversations", response_model=ConversationOut)
async def create_conversation(
    payload: ConversationCreateRequest,
    user: UserContext = Depends(get_user_context),
) -> ConversationOut:
    """Save a conversation; guests get an unsaved echo with a local ID."""
    messages = _to_messages(payload.messages)
    title = payload.title or generate_title(messages)
    if user.is_guest:
        now = datetime.now(timezone.utc)
        guest = Conversation(
            id=payload.guest_id or f"guest_{int(now.timestamp() * 1000)}",
            user_id="guest",
            title=title,
            messages=messages,
            ai_provider=payload.ai_provider or DEFAULT_PROVIDER,
            created_at=now,
            updated_at=now,
        )
        return _conversation_out(guest, is_guest=True)
    store = _require_conversation_store()
    try:
        conversation = store.create(
            user.user_id, messages, title=title, ai_provider=payload.ai_provider
        )
    except ConversationStoreError as exc:
        raise HTTPException(status_code=500, detail="Failed to save conversation") from exc
    logger.info(
        "conversation_created",
        extra={"conversation_id": conversation.id, "messages": len(messages)},
    )
    return _conversation_out(conversation)


@app.get("/api/conversations", response_model=ConversationListResponse)
async def list_conversations(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: UserContext = Depends(get_user_context),
) -> ConversationListResponse:
    if user.is_guest:
        return ConversationListResponse(conversations=[])
    store = _require_conversation_store()
    summaries = store.list_summaries(user.user_id, limit=limit, offset=offset)
    return ConversationListResponse(
        conversations=[
            ConversationSummaryOut(
                id=summary.id,
                title=summary.title,
                ai_provider=summary.ai_provider,
                created_at=summary.created_at,
                updated_at=summary.updated_at,
                message_count=summary.message_count,
                preview=summary.preview,
            )
            for summary in summaries
        ]
    )


@app.get("/api/conversations/export")
async def export_all_conversations(user: UserContext = Depends(get_user_context)):
    """Download every conversation of the caller as a versioned JSON document."""
    user_id = require_authenticated(user)
    store = _require_conversation_store()
    now = datetime.now(timezone.utc)
    document = export_conversations(store.list_full(user_id), exported_at=now)
    return JSONResponse(
        document,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(now)}"'},
    )


@app.post("/api/conversations/import/validate", response_model=ImportValidationResponse)
async def validate_import(request: Request) -> ImportValidationResponse:
    """Check an export document before it is imported."""
    try:
        data = await request.json()
    except ValueError:
        return ImportValidationResponse(valid=False, errors=["Invalid JSON"])
    valid, errors = validate_import_data(data)
    return ImportValidationResponse(valid=valid, errors=errors)


@app.get("/api/conversations/{conversation_id}/markdown")
async def conversation_markdown(
    conversation_id: str,
    user: UserContext = Depends(get_user_context),
):
    user_id = require_authenticated(user)
    store = _require_conversation_store()
    conversation = _conversation_or_404(store, user_id, conversation_id)
    return Response(
        export_conversation_markdown(conversation),
        media_type="text/markdown",
        headers={
            "Content-Disposition": f'attachment; filename="{markdown_filename(conversation)}"'
        },
    )


@app.get("/api/conversations/{conversation_id}", response_model=ConversationOut)
async def get_conversation(
    conversation_id: str,
    user: UserContext = Depends(get_user_context),
) -> ConversationOut:
    user_id = require_authenticated(user)
    store = _require_conversation_store()
    return _conversation_out(_conversation_or_404(store, user_id, conversation_id))


@app.put("/api/conversations/{conversation_id}", response_model=ConversationOut)
async def update_conversation(
    conversation_id: str,
    payload: ConversationUpdateRequest,
    user: UserContext = Depends(get_user_context),
) -> ConversationOut:
    """Apply a partial update to one of the caller's conversations."""
    user_id = require_authenticated(user)
    store = _require_conversation_store()
    changes = ConversationUpdate(
        messages=_to_messages(payload.messages) if payload.messages is not None else None,
        title=payload.title,
        ai_provider=payload.ai_provider,
    )
    try:
        conversation = store.update(user_id, conversation_id, changes)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return _conversation_out(conversation)


@app.delete("/api/conversations/{conversation_id}", response_model=DeleteResponse)
async def delete_conversation(
    conversation_id: str,
    user: UserContext = Depends(get_user_context),
) -> DeleteResponse:
    user_id = require_authenticated(user)
    store = _require_conversation_store()
    try:
        deleted = store.delete(user_id, conversation_id)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Conversation not found")
    logger.info("conversation_deleted", extra={"conversation_id": conversation_id})
    return DeleteResponse(message="Conversation deleted successfully")
