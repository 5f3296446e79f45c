from __future__ import annotations

"""Plain text and markdown loader for the source document."""

from mds_chatbot.rag.types import SourceDocument


def load_text_bytes(data: bytes, name: str) -> SourceDocument:
    """Load plain text bytes, dropping undecodable sequences."""
    text = data.decode("utf-8", errors="ignore")
    return SourceDocument(name=name, text=text)
