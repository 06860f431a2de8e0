"""
Data Models for the Retrieval Store

Defines:
1. ChunkingConfig - Word window size and overlap
2. ChunkMetadata / DocumentChunk - Immutable chunk registry entries
3. SearchResult - A single scored hit for a query
4. StoreStatus / InitializeResult - Lifecycle reporting
5. Request/response schemas for the HTTP layer

Design Principles:
- Pydantic v2 for validation and serialization
- snake_case in Python, camelCase on the wire (chunkIndex, relevanceScore, ...)
  so the existing frontend payloads keep working
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoreState(str, Enum):
    """Lifecycle of a RetrievalStore."""
    EMPTY = "empty"
    INGESTING = "ingesting"
    READY = "ready"


class ChunkingConfig(BaseModel):
    """
    Configuration for the word window chunker.

    The stride between consecutive windows is chunk_size - overlap; the
    chunker rejects combinations where it would not be positive.
    """
    chunk_size: int = Field(
        500,
        description="Words per chunk",
        ge=1,
    )
    overlap: int = Field(
        50,
        description="Words shared by consecutive chunks",
        ge=0,
    )

    @property
    def stride(self) -> int:
        return self.chunk_size - self.overlap


class ChunkMetadata(_WireModel):
    """Position of a chunk within its source document."""
    model_config = ConfigDict(frozen=True)

    source: str = Field(
        ...,
        description="Name of the source document",
        min_length=1,
    )
    chunk_index: int = Field(
        ...,
        description="Position of this chunk within the document (0-indexed)",
        ge=0,
    )
    total_chunks: int = Field(
        ...,
        description="Total number of chunks produced for the document",
        ge=1,
    )


class DocumentChunk(_WireModel):
    """A chunk of document text, the unit of indexing and retrieval."""
    model_config = ConfigDict(frozen=True)

    content: str = Field(
        ...,
        description="The chunk text",
        min_length=1,
    )
    metadata: ChunkMetadata


class SearchResult(_WireModel):
    """A single search hit, produced fresh per query."""
    content: str
    metadata: ChunkMetadata
    distance: float = Field(
        ...,
        description="Squared L2 distance to the query (0 = identical)",
        ge=0.0,
    )
    relevance_score: float = Field(
        ...,
        description="1 / (1 + distance), in (0, 1]",
        ge=0.0,
        le=1.0,
    )


class StoreStatus(_WireModel):
    initialized: bool = False
    documents_count: int = 0
    has_index: bool = False
    state: StoreState = StoreState.EMPTY
    dimension: Optional[int] = None


class InitializeResult(_WireModel):
    success: bool = True
    message: str
    documents_count: int = 0
    dimension: Optional[int] = None
    already_initialized: bool = False


# ---------------------------------------------------------------------------
# HTTP schemas
# ---------------------------------------------------------------------------

class SearchRequest(_WireModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., min_length=1)
    top_k: Optional[int] = Field(
        None,
        description="Number of results; <= 0 returns none, omitted uses the service default",
    )


class SearchResponse(_WireModel):
    success: bool = True
    query: str
    results: list[SearchResult] = Field(default_factory=list)
    count: int = 0


class StatusResponse(StoreStatus):
    success: bool = True


class ResetResponse(_WireModel):
    success: bool = True
    message: str = "Vector store reset"


class ErrorResponse(_WireModel):
    success: bool = False
    error: str
    needs_initialization: Optional[bool] = None
