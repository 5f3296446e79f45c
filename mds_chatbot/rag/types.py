from __future__ import annotations

"""Core data types for document chunks and keyword retrieval."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChunkMetadata:
    """Position and provenance of a chunk within its source document."""
    source: str
    chunk_index: int
    total_chunks: int
    word_count: int


@dataclass(frozen=True)
class DocumentChunk:
    """Bounded span of a source document, the unit of retrieval."""
    id: str
    content: str
    metadata: ChunkMetadata


@dataclass(frozen=True)
class SourceDocument:
    """Raw text extracted from a single source document."""
    name: str
    text: str


@dataclass(frozen=True)
class RetrievalResult:
    """Ranked chunks (best first) with their parallel relevance scores."""
    query: str
    chunks: list[DocumentChunk] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.chunks
