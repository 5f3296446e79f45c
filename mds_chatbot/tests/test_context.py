from __future__ import annotations

from mds_chatbot.rag.context import DEFAULT_CONTACT, ContactDetails, assemble_context
from mds_chatbot.rag.types import ChunkMetadata, DocumentChunk


def _chunk(content: str, index: int = 0, total: int = 1) -> DocumentChunk:
    return DocumentChunk(
        id=f"chunk-{index}",
        content=content,
        metadata=ChunkMetadata(
            source="faq.md", chunk_index=index, total_chunks=total, word_count=len(content.split())
        ),
    )


def test_chunks_joined_in_order() -> None:
    context = assemble_context([_chunk("First."), _chunk("Second.", 1, 2)])
    assert context == "First.\n\nSecond."


def test_empty_input_returns_fallback() -> None:
    context = assemble_context([])
    assert context == DEFAULT_CONTACT.fallback_message()
    assert context


def test_blank_chunks_skipped() -> None:
    assert assemble_context([_chunk("   ")], fallback="nothing here") == "nothing here"


def test_labeled_context_includes_position() -> None:
    context = assemble_context([_chunk("Fees are listed.", 2, 5)], labeled=True)
    assert context.startswith("Excerpt 1 (faq.md, chunk 3/5):\n")


def test_contact_details_render_configured_values() -> None:
    contact = ContactDetails(organization="Test School", phone="123", email="a@b.c")
    assert "contact Test School directly" in contact.fallback_message()
    assert "**Phone**: 123" in contact.contact_info()
