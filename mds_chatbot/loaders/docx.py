from __future__ import annotations

"""DOCX loader for the source document."""

from io import BytesIO

from mds_chatbot.rag.types import SourceDocument


class DocxLoaderError(RuntimeError):
    """Raised when DOCX loading fails."""
    pass


def load_docx_bytes(data: bytes, name: str) -> SourceDocument:
    """Extract paragraph and table text from DOCX bytes."""
    try:
        from docx import Document as DocxDocument
    except ImportError as exc:
        raise DocxLoaderError("python-docx is required to load DOCX files") from exc

    try:
        doc = DocxDocument(BytesIO(data))
    except Exception as exc:
        raise DocxLoaderError(f"Unable to parse DOCX file {name}: {exc}") from exc

    # Paragraphs stay on their own lines so the chunker can split on them.
    parts: list[str] = []
    for paragraph in doc.paragraphs:
        text = paragraph.text.strip()
        if text:
            parts.append(text)

    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    return SourceDocument(name=name, text="\n\n".join(parts).strip())
