from __future__ import annotations

"""Recursive character chunking with overlapping windows."""

import re
import uuid
from dataclasses import dataclass

from mds_chatbot.loaders.source import EmptyDocumentError
from mds_chatbot.rag.types import ChunkMetadata, DocumentChunk

DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ".", "!", "?", ";", ":", " ", "")

_INLINE_SPACE_RE = re.compile(r"[ \t\f\v]+")
_PARAGRAPH_GAP_RE = re.compile(r"\n{3,}")


class ConfigurationError(ValueError):
    """Raised when chunk size and overlap settings are inconsistent."""
    pass


def normalize_text(text: str) -> str:
    """Normalize line endings and whitespace while keeping paragraph breaks."""
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _INLINE_SPACE_RE.sub(" ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    return _PARAGRAPH_GAP_RE.sub("\n\n", cleaned).strip()


def count_words(text: str) -> int:
    return len(text.split())


@dataclass(frozen=True)
class TextChunker:
    """Split text on the most structural separator that keeps pieces in budget."""
    chunk_size: int = 1000
    chunk_overlap: int = 200
    separators: tuple[str, ...] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError("chunk_size must be positive")
        if self.chunk_overlap < 0:
            raise ConfigurationError("chunk_overlap must not be negative")
        if self.chunk_size <= self.chunk_overlap:
            raise ConfigurationError(
                f"chunk_size ({self.chunk_size}) must exceed chunk_overlap ({self.chunk_overlap})"
            )
        if not self.separators:
            raise ConfigurationError("at least one separator is required")

    def split_text(self, text: str) -> list[str]:
        """Split text into overlapping chunks of at most ``chunk_size`` characters."""
        cleaned = normalize_text(text)
        if not cleaned:
            return []
        return self._split(cleaned, list(self.separators))

    def chunk(self, text: str, source: str) -> list[DocumentChunk]:
        """Split text and wrap each piece in an annotated DocumentChunk."""
        pieces = self.split_text(text)
        if not pieces:
            raise EmptyDocumentError(f"No text content found in {source}")
        total = len(pieces)
        return [
            DocumentChunk(
                id=str(uuid.uuid4()),
                content=piece,
                metadata=ChunkMetadata(
                    source=source,
                    chunk_index=index,
                    total_chunks=total,
                    word_count=count_words(piece),
                ),
            )
            for index, piece in enumerate(pieces)
        ]

    def _split(self, text: str, separators: list[str]) -> list[str]:
        separator = separators[-1]
        remaining: list[str] = []
        for index, candidate in enumerate(separators):
            if candidate == "":
                separator = candidate
                break
            if candidate in text:
                separator = candidate
                remaining = separators[index + 1 :]
                break

        chunks: list[str] = []
        pending: list[str] = []
        for piece in _split_keeping_separator(text, separator):
            if len(piece) <= self.chunk_size:
                pending.append(piece)
                continue
            if pending:
                chunks.extend(self._merge(pending))
                pending = []
            if remaining:
                chunks.extend(self._split(piece, remaining))
            else:
                chunks.extend(self._merge(list(piece)))
        if pending:
            chunks.extend(self._merge(pending))
        return chunks

    def _merge(self, pieces: list[str]) -> list[str]:
        """Greedily join pieces, carrying up to ``chunk_overlap`` characters forward."""
        merged: list[str] = []
        window: list[str] = []
        total = 0
        for piece in pieces:
            length = len(piece)
            if window and total + length > self.chunk_size:
                joined = "".join(window).strip()
                if joined:
                    merged.append(joined)
                while window and (
                    total > self.chunk_overlap or total + length > self.chunk_size
                ):
                    total -= len(window.pop(0))
            window.append(piece)
            total += length
        joined = "".join(window).strip()
        if joined:
            merged.append(joined)
        return merged


def _split_keeping_separator(text: str, separator: str) -> list[str]:
    """Split after each separator occurrence so no characters are dropped."""
    if separator == "":
        return list(text)
    parts = re.split(f"(?<={re.escape(separator)})", text)
    return [part for part in parts if part]


def document_stats(chunks: list[DocumentChunk]) -> dict[str, object]:
    """Summarize a chunk set for logs and status endpoints."""
    total_words = sum(chunk.metadata.word_count for chunk in chunks)
    sources = sorted({chunk.metadata.source for chunk in chunks})
    return {
        "total_chunks": len(chunks),
        "total_words": total_words,
        "average_words_per_chunk": round(total_words / len(chunks)) if chunks else 0,
        "sources": sources,
    }
