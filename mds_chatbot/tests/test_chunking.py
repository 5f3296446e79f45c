from __future__ import annotations

import pytest

from mds_chatbot.loaders.chunking import (
    ConfigurationError,
    EmptyDocumentError,
    TextChunker,
    count_words,
    document_stats,
    normalize_text,
)
from mds_chatbot.loaders.source import DocumentLoadError


@pytest.mark.parametrize(
    ("size", "overlap"),
    [(0, 0), (-5, 0), (100, -1), (100, 100), (100, 150)],
)
def test_invalid_configuration_rejected(size: int, overlap: int) -> None:
    with pytest.raises(ConfigurationError):
        TextChunker(chunk_size=size, chunk_overlap=overlap)


def test_empty_document_raises() -> None:
    chunker = TextChunker(chunk_size=100, chunk_overlap=10)
    with pytest.raises(EmptyDocumentError):
        chunker.chunk("   \n\n\t  ", source="blank.md")


def test_empty_document_error_is_load_error() -> None:
    assert issubclass(EmptyDocumentError, DocumentLoadError)


def test_short_text_is_single_chunk() -> None:
    text = "Our school offers a science program. Admission requires an application form."
    chunks = TextChunker(chunk_size=1000, chunk_overlap=200).chunk(text, source="faq.md")
    assert len(chunks) == 1
    assert chunks[0].content == text
    assert chunks[0].metadata.chunk_index == 0
    assert chunks[0].metadata.total_chunks == 1
    assert chunks[0].metadata.word_count == 11


def test_indices_are_contiguous_and_totals_shared() -> None:
    text = "\n\n".join(f"Paragraph {i} talks about topic number {i}." for i in range(30))
    chunks = TextChunker(chunk_size=120, chunk_overlap=20).chunk(text, source="doc.md")
    assert len(chunks) > 1
    assert [chunk.metadata.chunk_index for chunk in chunks] == list(range(len(chunks)))
    assert {chunk.metadata.total_chunks for chunk in chunks} == {len(chunks)}
    assert len({chunk.id for chunk in chunks}) == len(chunks)


def test_chunks_respect_size_bound() -> None:
    text = " ".join(f"token{i}" for i in range(500))
    chunker = TextChunker(chunk_size=80, chunk_overlap=15)
    for piece in chunker.split_text(text):
        assert 0 < len(piece) <= 80


def test_unbroken_text_falls_back_to_characters() -> None:
    chunker = TextChunker(chunk_size=10, chunk_overlap=2)
    pieces = chunker.split_text("x" * 35)
    assert all(len(piece) <= 10 for piece in pieces)
    assert "".join(pieces).count("x") >= 35


def test_adjacent_chunks_overlap() -> None:
    text = " ".join(f"word{i:02d}" for i in range(40))
    pieces = TextChunker(chunk_size=50, chunk_overlap=20).split_text(text)
    assert len(pieces) > 1
    for current, following in zip(pieces, pieces[1:]):
        assert current.split()[-1] in following.split()


def test_zero_overlap_does_not_repeat_words() -> None:
    text = " ".join(f"word{i:02d}" for i in range(40))
    pieces = TextChunker(chunk_size=50, chunk_overlap=0).split_text(text)
    words = [word for piece in pieces for word in piece.split()]
    assert words == text.split()


def test_paragraphs_preferred_as_boundaries() -> None:
    first = "Tuition fees are due in September."
    second = "Tuition is charged per term. Additional fees apply for transport."
    pieces = TextChunker(chunk_size=70, chunk_overlap=10).split_text(f"{first}\n\n{second}")
    assert pieces == [first, second]


def test_word_count_matches_content() -> None:
    text = "\n\n".join(f"Section {i}: students learn several subjects here." for i in range(20))
    for chunk in TextChunker(chunk_size=90, chunk_overlap=10).chunk(text, source="doc.md"):
        assert chunk.metadata.word_count == count_words(chunk.content)


_MIXED_TEXT = (
    "Admissions open in March. Forms are online, at the office, or by post.\n\n"
    "Fees: tuition is billed per term; transport and meals are extra.\n"
    "Scholarships cover up to half of tuition for eligible students.\n\n"
    + " ".join(f"note{i}" for i in range(60))
)


@pytest.mark.parametrize(
    ("size", "overlap"),
    [(40, 5), (60, 20), (90, 10), (150, 149)],
)
def test_chunks_cover_every_word(size: int, overlap: int) -> None:
    chunks = TextChunker(chunk_size=size, chunk_overlap=overlap).chunk(_MIXED_TEXT, source="faq.md")
    assert all(len(chunk.content) <= size for chunk in chunks)
    total = count_words(normalize_text(_MIXED_TEXT))
    assert sum(chunk.metadata.word_count for chunk in chunks) >= total


def test_normalize_text_keeps_paragraph_breaks() -> None:
    raw = "Line one   with  spaces\r\n\r\n\r\n\r\nLine   two\t\tend  "
    assert normalize_text(raw) == "Line one with spaces\n\nLine two end"


def test_document_stats_summary() -> None:
    chunks = TextChunker(chunk_size=40, chunk_overlap=0).chunk(
        "alpha beta gamma delta.\n\nepsilon zeta eta theta.", source="greek.md"
    )
    stats = document_stats(chunks)
    assert stats["total_chunks"] == len(chunks)
    assert stats["total_words"] == 8
    assert stats["sources"] == ["greek.md"]
    assert document_stats([])["average_words_per_chunk"] == 0
