#!/usr/bin/env python3
"""
Retrieval Demo - Initialize the store and run a similarity search

Prerequisites:
    1. The policy PDFs exist in the assets directory (see RETRIEVAL_ASSETS_DIR)
    2. For --embedding-backend ollama: Ollama is running (ollama serve)

Usage:
    python -m retrieval.main                                   # default query
    python -m retrieval.main --query "seed fund eligibility"   # custom query
    python -m retrieval.main --status-only                     # ingest and report
"""

import argparse
import sys

from pdf_extractor.exceptions import format_error_chain

from .config import RetrievalConfig
from .exceptions import RetrievalError, ExtractionError
from .logging_config import setup_logging
from .store import RetrievalStore


def show_status(store: RetrievalStore) -> None:
    status = store.status()
    print("\n=== Store status ===")
    print(f"  State:           {status.state.value}")
    print(f"  Chunks:          {status.documents_count}")
    print(f"  Dimension:       {status.dimension}")
    print(f"  Index built:     {status.has_index}")


def search_demo(store: RetrievalStore, query: str, top_k: int) -> None:
    print(f"\n=== Search: \"{query}\" (top {top_k}) ===")
    results = store.search(query, top_k=top_k)

    if not results:
        print("  No results.")
        return

    for i, r in enumerate(results, 1):
        meta = r.metadata
        print(f"\n  --- Hit {i} (relevance {r.relevance_score:.4f}, distance {r.distance:.4f}) ---")
        print(f"  Source: {meta.source} [{meta.chunk_index + 1}/{meta.total_chunks}]")
        preview = r.content[:200].replace("\n", " ")
        print(f"  Text:   {preview}...")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Ingest the policy PDFs and query them by similarity",
    )
    parser.add_argument(
        "--query", "-q",
        default="What is the eligibility criteria for the seed fund scheme?",
        help="Search query",
    )
    parser.add_argument(
        "--top-k", "-k",
        type=int,
        default=None,
        help="Number of results (default: RETRIEVAL_DEFAULT_TOP_K or 5)",
    )
    parser.add_argument(
        "--assets-dir",
        default=None,
        help="Directory containing the policy PDFs",
    )
    parser.add_argument(
        "--embedding-backend",
        choices=["sentence-transformers", "ollama"],
        default=None,
    )
    parser.add_argument(
        "--index-backend",
        choices=["flat", "chroma"],
        default=None,
    )
    parser.add_argument(
        "--status-only",
        action="store_true",
        help="Only ingest and print the store status",
    )
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    config = RetrievalConfig.from_env()
    if args.assets_dir:
        config.assets_dir = args.assets_dir
    if args.embedding_backend:
        config.embedding_backend = args.embedding_backend
    if args.index_backend:
        config.index_backend = args.index_backend
    setup_logging(args.log_level or config.log_level)

    store = RetrievalStore(config)

    def progress(current: int, total: int, status: str) -> None:
        print(f"  [{current}/{total}] {status}")

    print("\n=== Initialization ===")
    try:
        result = store.initialize(progress_callback=progress)
    except (ExtractionError, RetrievalError) as exc:
        print(f"\nERROR: {format_error_chain(exc)}")
        return 1
    print(f"  {result.message}: {result.documents_count} chunks")

    show_status(store)
    if args.status_only:
        return 0

    top_k = args.top_k if args.top_k is not None else config.default_top_k
    search_demo(store, args.query, top_k)
    return 0


if __name__ == "__main__":
    sys.exit(main())
