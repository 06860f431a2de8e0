"""
Retrieval component for the startup funding assistant.

Ingests the policy PDFs (extract -> chunk -> embed -> index) and answers
similarity queries with ranked, scored passages.

Quick Start:
    from retrieval import RetrievalStore

    store = RetrievalStore()
    store.initialize()
    results = store.search("ECMS incentive for components", top_k=3)
"""

__version__ = "1.0.0"

from .config import RetrievalConfig
from .store import RetrievalStore
from .chunker import DocumentChunker, split_text_into_chunks
from .embedder import (
    EmbeddingProvider,
    OllamaEmbedder,
    SentenceTransformerEmbedder,
    create_embedder,
    get_embedder,
)
from .vector_index import (
    ChromaVectorIndex,
    FlatL2Index,
    SearchHits,
    VectorIndex,
    create_vector_index,
)
from .scoring import relevance_score
from .models import (
    ChunkingConfig,
    ChunkMetadata,
    DocumentChunk,
    InitializeResult,
    SearchResult,
    StoreState,
    StoreStatus,
)
from .exceptions import (
    DimensionMismatchError,
    EmbeddingConnectionError,
    EmbeddingError,
    ExtractionError,
    InvalidArgumentError,
    NotInitializedError,
    RetrievalError,
)

__all__ = [
    "__version__",
    "RetrievalConfig",
    "RetrievalStore",
    "DocumentChunker",
    "split_text_into_chunks",
    "EmbeddingProvider",
    "OllamaEmbedder",
    "SentenceTransformerEmbedder",
    "create_embedder",
    "get_embedder",
    "ChromaVectorIndex",
    "FlatL2Index",
    "SearchHits",
    "VectorIndex",
    "create_vector_index",
    "relevance_score",
    "ChunkingConfig",
    "ChunkMetadata",
    "DocumentChunk",
    "InitializeResult",
    "SearchResult",
    "StoreState",
    "StoreStatus",
    "DimensionMismatchError",
    "EmbeddingConnectionError",
    "EmbeddingError",
    "ExtractionError",
    "InvalidArgumentError",
    "NotInitializedError",
    "RetrievalError",
]
