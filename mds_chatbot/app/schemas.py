from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    history: list[HistoryMessage] = Field(default_factory=list)


class RAGFallbackResponse(BaseModel):
    content: str
    done: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int | None = Field(default=None, ge=1, le=20)
    explain: bool = False


class ChunkMetadataOut(BaseModel):
    source: str
    chunk_index: int
    total_chunks: int
    word_count: int


class ChunkOut(BaseModel):
    id: str
    content: str
    metadata: ChunkMetadataOut
    score: float | None = None
    breakdown: dict[str, float] | None = None


class SearchResponse(BaseModel):
    query: str
    chunks: list[ChunkOut]
    scores: list[float]
    context: str


class TopicResponse(BaseModel):
    topic: str
    chunks: list[ChunkOut]


class RAGStatusResponse(BaseModel):
    is_initialized: bool
    document_count: int
    total_chunks: int
    total_words: int
    average_words_per_chunk: int
    sources: list[str]
    document_path: str


class EnvironmentStatusResponse(BaseModel):
    has_auth: bool
    has_database: bool
    available_providers: list[str]
    required_missing: list[str]
    errors: list[str]
    warnings: list[str]
    is_configured: bool


class MessageIn(BaseModel):
    id: str = Field(min_length=1)
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)
    timestamp: datetime | None = None


class MessageOut(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class ConversationCreateRequest(BaseModel):
    messages: list[MessageIn]
    title: str | None = None
    ai_provider: str | None = None
    guest_id: str | None = None


class ConversationUpdateRequest(BaseModel):
    messages: list[MessageIn] | None = None
    title: str | None = None
    ai_provider: str | None = None


class ConversationOut(BaseModel):
    id: str
    title: str
    messages: list[MessageOut]
    ai_provider: str
    created_at: datetime
    updated_at: datetime
    is_guest: bool = False


class ConversationSummaryOut(BaseModel):
    id: str
    title: str
    ai_provider: str
    created_at: datetime
    updated_at: datetime
    message_count: int
    preview: str


class ConversationListResponse(BaseModel):
    conversations: list[ConversationSummaryOut]


class DeleteResponse(BaseModel):
    message: str


class ImportValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
