from __future__ import annotations

"""In-memory keyword retrieval store over a single source document."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from mds_chatbot.loaders.chunking import TextChunker, document_stats
from mds_chatbot.rag.context import DEFAULT_CONTACT, ContactDetails, assemble_context
from mds_chatbot.rag.scoring import KeywordScorer
from mds_chatbot.rag.types import DocumentChunk, RetrievalResult, SourceDocument

logger = logging.getLogger(__name__)

TOPIC_QUERIES: dict[str, str] = {
    "programs": "programs courses curriculum academic offerings",
    "admission": "admission requirements application enrollment",
    "facilities": "facilities infrastructure buildings campus",
    "fees": "fees tuition cost payment scholarship",
    "about": "about academy history mission vision",
}


@dataclass
class KeywordRAGStore:
    """Lazily chunked document with keyword scoring, shared across requests.

    The chunk set is built once under a lock and then published as an
    immutable tuple; retrieval reads that tuple without locking.
    """
    loader: Callable[[], SourceDocument]
    chunker: TextChunker = field(default_factory=TextChunker)
    scorer: KeywordScorer = field(default_factory=KeywordScorer.default)
    default_top_k: int = 3
    contact: ContactDetails = DEFAULT_CONTACT
    _chunks: tuple[DocumentChunk, ...] = field(default=(), init=False, repr=False)
    _ready: bool = field(default=False, init=False, repr=False)
    _init_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def initialize(self) -> None:
        """Load and chunk the source document once; later calls are no-ops."""
        if self._ready:
            return
        with self._init_lock:
            if self._ready:
                logger.debug("keyword_store_already_initialized")
                return
            self._chunks = self._build_chunks()
            self._ready = True

    def reinitialize(self) -> None:
        """Rebuild the chunk set from the source and swap it in."""
        with self._init_lock:
            self._chunks = self._build_chunks()
            self._ready = True

    def is_ready(self) -> bool:
        return self._ready

    @property
    def chunks(self) -> tuple[DocumentChunk, ...]:
        return self._chunks

    def retrieve(self, query: str, top_k: int | None = None) -> RetrievalResult:
        """Return up to ``top_k`` chunks with a positive score, best first."""
        limit = self.default_top_k if top_k is None else top_k
        if limit < 1:
            raise ValueError("top_k must be a positive integer")
        if not self._ready:
            self.initialize()
        chunks = self._chunks
        phrase, tokens = self.scorer.prepare(query)
        scored = [
            (chunk, self.scorer.score_prepared(phrase, tokens, chunk.content))
            for chunk in chunks
        ]
        # sorted() is stable, so equal scores keep document order.
        ranked = sorted(
            (item for item in scored if item[1] > 0),
            key=lambda item: item[1],
            reverse=True,
        )[:limit]
        logger.info(
            "retrieval_complete",
            extra={
                "results": len(ranked),
                "candidates": len(chunks),
                "query_length": len(query),
                "top_k": limit,
            },
        )
        return RetrievalResult(
            query=query,
            chunks=[chunk for chunk, _ in ranked],
            scores=[score for _, score in ranked],
        )

    def get_context(self, query: str, top_k: int | None = None, labeled: bool = False) -> str:
        """Retrieve and assemble prompt context, falling back to contact details."""
        result = self.retrieve(query, top_k=top_k)
        return assemble_context(
            result.chunks,
            fallback=self.contact.fallback_message(),
            labeled=labeled,
        )

    def search_by_topic(self, topic: str, top_k: int = 5) -> list[DocumentChunk]:
        query = TOPIC_QUERIES.get(topic.strip().lower(), topic)
        return self.retrieve(query, top_k=top_k).chunks

    def contact_info(self) -> str:
        return self.contact.contact_info()

    def stats(self) -> dict[str, object]:
        chunks = list(self._chunks)
        summary = document_stats(chunks)
        return {
            "is_initialized": self._ready,
            "document_count": 1 if chunks else 0,
            **summary,
        }

    def _build_chunks(self) -> tuple[DocumentChunk, ...]:
        logger.info("keyword_store_initializing")
        try:
            source = self.loader()
            chunks = self.chunker.chunk(source.text, source=source.name)
        except Exception as exc:
            logger.error(
                "keyword_store_initialization_failed",
                extra={"error": type(exc).__name__, "detail": str(exc)},
            )
            raise
        logger.info("keyword_store_initialized", extra=document_stats(chunks))
        return tuple(chunks)
