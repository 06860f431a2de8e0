"""
Retrieval Store - Ingestion pipeline and similarity search over policy PDFs

Owns the chunk registry and the vector index and moves through a small
lifecycle:

    EMPTY --initialize()--> INGESTING --success--> READY
      ^                         |                    |
      +-------failure-----------+                    |
      +------------------------reset()---------------+

- Ingest: extract text -> chunk -> embed -> index, for every configured
  document, in document order. Label i in the index is chunk i in the
  registry.
- Search: embed the query, k-NN over the index, map labels back to chunks
  and score the distances.

Design:
- Single-flight ingestion: the EMPTY -> INGESTING switch happens under a
  lock; concurrent initialize() calls wait for the running ingestion and
  get its result (or its error) instead of ingesting again.
- Atomic publication: registry and index are built into fresh objects and
  published with one reference swap, so searches see either nothing or a
  complete, immutable snapshot. A failed ingestion publishes nothing.
- Reset only unpublishes: a search already running keeps its snapshot and
  the index is released when the last such search returns.

Usage:
    from retrieval import RetrievalStore

    store = RetrievalStore()
    store.initialize()
    for hit in store.search("seed fund eligibility", top_k=3):
        print(hit.relevance_score, hit.metadata.source)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Sequence

from pdf_extractor.sources import DocumentSource, TextExtractor
from pdf_extractor.text_extractor import PDFTextExtractor

from .chunker import DocumentChunker
from .config import RetrievalConfig
from .embedder import EmbeddingProvider, get_embedder
from .exceptions import (
    EmbeddingError,
    ExtractionError,
    InvalidArgumentError,
    NotInitializedError,
    RetrievalError,
    format_error_chain,
)
from .models import (
    ChunkingConfig,
    DocumentChunk,
    InitializeResult,
    SearchResult,
    StoreState,
    StoreStatus,
)
from .scoring import relevance_score
from .vector_index import VectorIndex, create_vector_index

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class _Snapshot:
    """
    Published (registry, index) pair.

    Searches hold a read lease while they use the index; a retired snapshot
    releases its index only after the last lease is returned.
    """

    def __init__(self, chunks: tuple[DocumentChunk, ...], index: VectorIndex):
        self.chunks = chunks
        self.index = index
        self._readers = 0
        self._retired = False
        self._lock = threading.Lock()

    def acquire(self) -> None:
        with self._lock:
            self._readers += 1

    def release(self) -> None:
        with self._lock:
            self._readers -= 1
            drop = self._retired and self._readers == 0
        if drop:
            self.index.drop()

    def retire(self) -> None:
        with self._lock:
            self._retired = True
            drop = self._readers == 0
        if drop:
            self.index.drop()


class _Flight:
    """Outcome of one in-progress ingestion, shared with concurrent callers."""

    def __init__(self) -> None:
        self._done = threading.Event()
        self._result: Optional[InitializeResult] = None
        self._error: Optional[BaseException] = None

    def finish(self, result: InitializeResult) -> None:
        self._result = result
        self._done.set()

    def fail(self, error: BaseException) -> None:
        self._error = error
        self._done.set()

    def join(self) -> None:
        self._done.wait()

    def wait(self) -> InitializeResult:
        self._done.wait()
        if self._error is not None:
            raise self._error
        return self._result


class RetrievalStore:
    """
    In-memory retrieval store over a fixed set of documents.

    All state is instance-scoped, so several stores (e.g. in tests) can
    coexist.
    """

    def __init__(
        self,
        config: Optional[RetrievalConfig] = None,
        embedder: Optional[EmbeddingProvider] = None,
        sources: Optional[Sequence[DocumentSource]] = None,
        extractor: Optional[TextExtractor] = None,
        index_factory: Optional[Callable[[], VectorIndex]] = None,
    ):
        """
        Initialize the store (nothing is ingested until initialize()).

        Args:
            config: Store configuration. Uses defaults if not provided.
            embedder: Embedding provider. Defaults to the shared provider
                      for the configured backend.
            sources: Documents to ingest. Defaults to config.document_sources().
            extractor: Turns raw document bytes into text. Defaults to PyMuPDF.
            index_factory: Builds an empty VectorIndex for each ingestion.
        """
        self.config = config or RetrievalConfig()
        self._embedder = embedder
        self._sources = list(sources) if sources is not None else None
        self._extractor = extractor or PDFTextExtractor()
        self._index_factory = index_factory or (lambda: create_vector_index(self.config))
        self._chunker = DocumentChunker(
            ChunkingConfig(
                chunk_size=self.config.chunk_size,
                overlap=self.config.chunk_overlap,
            )
        )

        self._state = StoreState.EMPTY
        self._snapshot: Optional[_Snapshot] = None
        self._flight: Optional[_Flight] = None
        self._state_lock = threading.Lock()

    @property
    def embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            self._embedder = get_embedder(self.config)
        return self._embedder

    @property
    def sources(self) -> list[DocumentSource]:
        if self._sources is not None:
            return list(self._sources)
        return self.config.document_sources()

    @property
    def state(self) -> StoreState:
        return self._state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, progress_callback: Optional[ProgressCallback] = None) -> InitializeResult:
        """
        Ingest all configured documents, unless already done.

        Returns immediately when READY. When another thread is ingesting,
        waits for it and returns its result. Any extraction or embedding
        failure leaves the store EMPTY and is re-raised.
        """
        with self._state_lock:
            if self._state is StoreState.READY:
                logger.info("Vector store already initialized")
                return InitializeResult(
                    message="Vector store already initialized",
                    documents_count=len(self._snapshot.chunks),
                    dimension=self._snapshot.index.dimension,
                    already_initialized=True,
                )
            if self._state is StoreState.INGESTING:
                flight = self._flight
                owner = False
            else:
                flight = self._flight = _Flight()
                self._state = StoreState.INGESTING
                owner = True

        if not owner:
            logger.info("Vector store initialization in progress, waiting for it")
            return flight.wait()

        logger.info("Initializing vector store...")
        try:
            snapshot = self._build(progress_callback)
        except BaseException as exc:
            with self._state_lock:
                self._state = StoreState.EMPTY
                self._flight = None
            flight.fail(exc)
            logger.error("Error initializing vector store:\n%s", format_error_chain(exc))
            raise

        with self._state_lock:
            self._snapshot = snapshot
            self._state = StoreState.READY
            self._flight = None

        result = InitializeResult(
            message="Vector store initialized",
            documents_count=len(snapshot.chunks),
            dimension=snapshot.index.dimension,
        )
        flight.finish(result)
        logger.info(
            "Vector store initialized: %d chunks, dimension %s",
            result.documents_count,
            result.dimension,
        )
        return result

    def reset(self) -> None:
        """
        Discard all chunks and the index; waits for a running ingestion first.

        Searches that already hold the old snapshot finish against it.
        """
        while True:
            with self._state_lock:
                if self._state is not StoreState.INGESTING:
                    snapshot = self._snapshot
                    self._snapshot = None
                    self._state = StoreState.EMPTY
                    break
                flight = self._flight
            flight.join()

        if snapshot is not None:
            snapshot.retire()
        logger.info("Vector store reset")

    def status(self) -> StoreStatus:
        with self._state_lock:
            state = self._state
            snapshot = self._snapshot
        return StoreStatus(
            initialized=state is StoreState.READY,
            documents_count=len(snapshot.chunks) if snapshot else 0,
            has_index=snapshot is not None,
            state=state,
            dimension=snapshot.index.dimension if snapshot else None,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """
        Find the chunks closest to a query.

        Args:
            query: Natural-language query text.
            top_k: Maximum number of results; <= 0 returns an empty list.

        Returns:
            SearchResult list, closest first.

        Raises:
            NotInitializedError: If the store is not READY.
            EmbeddingError: If the query cannot be embedded.
        """
        snapshot = self._ready_snapshot()
        try:
            return self._search(snapshot, query, top_k)
        finally:
            snapshot.release()

    def _search(self, snapshot: _Snapshot, query: str, top_k: int) -> list[SearchResult]:
        if isinstance(top_k, bool) or not isinstance(top_k, int):
            raise InvalidArgumentError(f"top_k must be an integer, got {top_k!r}")
        if top_k <= 0:
            return []

        logger.info('Searching for: "%s"', query)
        query_vector = self.embedder.embed(query)
        hits = snapshot.index.search(query_vector, top_k)

        results = []
        for label, distance in zip(hits.labels, hits.distances):
            chunk = snapshot.chunks[label]
            results.append(SearchResult(
                content=chunk.content,
                metadata=chunk.metadata,
                distance=distance,
                relevance_score=relevance_score(distance),
            ))

        logger.info("Found %d relevant chunks", len(results))
        return results

    def get_chunk(self, label: int) -> Optional[DocumentChunk]:
        """Look up a registry entry by index label."""
        snapshot = self._snapshot
        if snapshot is None or not 0 <= label < len(snapshot.chunks):
            return None
        return snapshot.chunks[label]

    def health_check(self) -> dict[str, Any]:
        return {
            "store": self.status().model_dump(mode="json"),
            "documents_configured": [source.name for source in self.sources],
            **self.embedder.health_check(),
        }

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _ready_snapshot(self) -> _Snapshot:
        """Leased snapshot of a READY store; the caller must release() it."""
        with self._state_lock:
            if self._state is not StoreState.READY or self._snapshot is None:
                raise NotInitializedError()
            self._snapshot.acquire()
            return self._snapshot

    def _build(self, progress_callback: Optional[ProgressCallback]) -> _Snapshot:
        chunks = self._load_chunks()
        index = self._index_factory()
        try:
            self._embed_into(index, chunks, progress_callback)
            if len(index) != len(chunks):
                raise RetrievalError(
                    f"Index holds {len(index)} vectors for {len(chunks)} chunks"
                )
        except BaseException:
            index.drop()
            raise
        return _Snapshot(chunks=tuple(chunks), index=index)

    def _load_chunks(self) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        for source in self.sources:
            logger.info("Processing: %s", source.name)
            try:
                text = source.load_text(self._extractor)
            except ExtractionError:
                raise
            except Exception as e:
                raise ExtractionError(
                    f"Failed to extract text from '{source.name}'",
                    details=str(e),
                ) from e

            doc_chunks = self._chunker.chunk_document(source.name, text)
            if not doc_chunks:
                logger.warning("No text extracted from %s", source.name)
            logger.info(
                "Extracted %d characters from %s, split into %d chunks",
                len(text),
                source.name,
                len(doc_chunks),
            )
            chunks.extend(doc_chunks)

        logger.info("Loaded %d document chunks", len(chunks))
        return chunks

    def _embed_into(
        self,
        index: VectorIndex,
        chunks: list[DocumentChunk],
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        total = len(chunks)
        batch_size = max(1, self.config.embed_batch_size)
        delay = self.config.embed_delay_seconds

        if progress_callback:
            progress_callback(0, total, "Generating embeddings...")

        done = 0
        for start in range(0, total, batch_size):
            batch = chunks[start:start + batch_size]
            vectors = self._embed_batch(batch)
            index.insert_many(vectors)
            done += len(batch)
            logger.debug("Embedded %d/%d: %s", done, total, batch[-1].metadata.source)

            if progress_callback:
                progress_callback(done, total, "Embedding...")

            # pause between calls to stay under provider rate limits
            if delay > 0 and done < total:
                time.sleep(delay)

        if progress_callback:
            progress_callback(done, total, "Done")

    def _embed_batch(self, batch: list[DocumentChunk]) -> list[list[float]]:
        try:
            if len(batch) == 1:
                vectors = [self.embedder.embed(batch[0].content)]
            else:
                vectors = self.embedder.embed_batch([chunk.content for chunk in batch])
        except RetrievalError:
            raise
        except Exception as e:
            raise EmbeddingError(original_error=e) from e

        if len(vectors) != len(batch):
            raise EmbeddingError(
                f"Embedding provider returned {len(vectors)} vectors for {len(batch)} chunks"
            )
        return vectors
