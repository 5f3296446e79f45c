from __future__ import annotations

"""CLI utility to chunk the configured document and try keyword queries."""

import argparse

from mds_chatbot.app.dependencies import get_rag_store
from mds_chatbot.app.settings import settings


def main() -> None:
    """Print chunk statistics and, optionally, ranked results for a query."""
    parser = argparse.ArgumentParser(description="Inspect the keyword retrieval index.")
    parser.add_argument("--query", help="Query to score against the chunks.")
    parser.add_argument("--top-k", type=int, default=settings.top_k)
    parser.add_argument("--samples", type=int, default=2, help="Chunks to preview.")
    args = parser.parse_args()

    store = get_rag_store()
    store.initialize()
    stats = store.stats()
    print(f"Document: {settings.document_path}")
    print(
        f"Chunks: {stats['total_chunks']}  words: {stats['total_words']}  "
        f"avg words/chunk: {stats['average_words_per_chunk']}"
    )
    for chunk in store.chunks[: args.samples]:
        preview = chunk.content[:120].replace("\n", " ")
        print(f"  [{chunk.metadata.chunk_index}] {preview}...")

    if not args.query:
        return
    result = store.retrieve(args.query, top_k=args.top_k)
    if result.is_empty:
        print("No matching chunks; callers receive the contact fallback.")
        return
    for rank, (chunk, score) in enumerate(zip(result.chunks, result.scores), start=1):
        breakdown = store.scorer.explain(args.query, chunk.content)
        print(f"{rank}. chunk {chunk.metadata.chunk_index} score={score:g} {breakdown}")


if __name__ == "__main__":
    main()
