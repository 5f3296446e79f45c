from __future__ import annotations

"""Source document resolution for the keyword retrieval store."""

import logging
from pathlib import Path
from typing import Callable

from mds_chatbot.loaders.docx import DocxLoaderError, load_docx_bytes
from mds_chatbot.loaders.text import load_text_bytes
from mds_chatbot.rag.types import SourceDocument

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".docx", ".txt", ".text", ".md", ".markdown"}


class DocumentLoadError(RuntimeError):
    """Raised when the source document is missing, unreadable or has no text."""
    pass


class EmptyDocumentError(DocumentLoadError):
    """Raised when a document is read but yields no usable text."""
    pass


def load_source_bytes(data: bytes, name: str) -> SourceDocument:
    """Decode source bytes based on the file suffix of ``name``."""
    suffix = Path(name).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DocumentLoadError(f"Unsupported source document type: {suffix or name}")
    if suffix == ".docx":
        try:
            document = load_docx_bytes(data, name=name)
        except DocxLoaderError as exc:
            raise DocumentLoadError(str(exc)) from exc
    else:
        document = load_text_bytes(data, name=name)
    if not document.text.strip():
        raise EmptyDocumentError(f"No text content found in {name}")
    return document


def load_source_document(path: Path) -> SourceDocument:
    """Read and decode a source document from disk."""
    if not path.is_file():
        raise DocumentLoadError(f"File not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DocumentLoadError(f"Unable to read {path}: {exc}") from exc
    document = load_source_bytes(data, name=path.name)
    logger.info(
        "source_document_loaded",
        extra={"source": document.name, "characters": len(document.text)},
    )
    return document


def file_loader(path: Path) -> Callable[[], SourceDocument]:
    """Return a zero-argument loader bound to ``path``."""
    def _load() -> SourceDocument:
        return load_source_document(path)

    return _load
