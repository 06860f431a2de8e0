"""
Document Chunker - Word window chunking for the retrieval store

Splits extracted document text into overlapping, fixed-size word windows and
tags each window with its source and position.

Algorithm:
1. Split the text on whitespace runs into a word sequence.
2. Emit a window of chunk_size words, then advance the start by
   chunk_size - overlap words.
3. Stop once a window reaches the end of the word sequence; the last window
   may be shorter than chunk_size.
4. Attach metadata: source name, chunk index, total chunks of the source.

Usage:
    from retrieval.chunker import DocumentChunker
    from retrieval.models import ChunkingConfig

    chunker = DocumentChunker(ChunkingConfig(chunk_size=500, overlap=50))
    chunks = chunker.chunk_document("ECMS Guidelines", text)
"""

from typing import Optional

from .exceptions import InvalidArgumentError
from .models import ChunkingConfig, ChunkMetadata, DocumentChunk


def _validate_window(chunk_size: int, overlap: int) -> None:
    if chunk_size < 1:
        raise InvalidArgumentError(f"chunk_size must be at least 1, got {chunk_size}")
    if overlap < 0:
        raise InvalidArgumentError(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidArgumentError(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )


def split_text_into_chunks(
    text: str,
    chunk_size: int = 500,
    overlap: int = 50,
) -> list[str]:
    """
    Split text into overlapping word windows.

    Args:
        text: Raw extracted document text.
        chunk_size: Words per window.
        overlap: Words shared by consecutive windows.

    Returns:
        Non-empty window strings in document order.

    Raises:
        InvalidArgumentError: If the window parameters give a stride below 1.
    """
    _validate_window(chunk_size, overlap)

    words = (text or "").split()
    stride = chunk_size - overlap
    chunks: list[str] = []

    for start in range(0, len(words), stride):
        window = " ".join(words[start:start + chunk_size])
        if window:
            chunks.append(window)
        if start + chunk_size >= len(words):
            break

    return chunks


class DocumentChunker:
    """Turns document text into DocumentChunk objects with position metadata."""

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        _validate_window(self.config.chunk_size, self.config.overlap)

    def split(self, text: str) -> list[str]:
        return split_text_into_chunks(
            text,
            chunk_size=self.config.chunk_size,
            overlap=self.config.overlap,
        )

    def chunk_document(self, source: str, text: str) -> list[DocumentChunk]:
        windows = self.split(text)
        total = len(windows)
        return [
            DocumentChunk(
                content=window,
                metadata=ChunkMetadata(
                    source=source,
                    chunk_index=index,
                    total_chunks=total,
                ),
            )
            for index, window in enumerate(windows)
        ]
