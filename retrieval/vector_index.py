"""
Vector Index - k-nearest-neighbor search over embedding vectors

Entries are labelled by insertion order (0, 1, 2, ...); the label is the
offset of the matching chunk in the store's chunk registry.

Contract shared by all implementations:
- Distances are squared L2, ascending; ties go to the lower label.
- All vectors share the dimensionality of the first insert.
- An empty index answers every query with no hits; k larger than the
  index returns every entry.

Implementations:
- FlatL2Index: exhaustive numpy comparison (the corpus is hundreds of
  chunks, not millions).
- ChromaVectorIndex: ChromaDB collection with l2 space, re-sorted so the
  ordering contract above still holds.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, NamedTuple, Optional, Sequence

import chromadb
import numpy as np

from .exceptions import DimensionMismatchError, InvalidArgumentError

if TYPE_CHECKING:
    from .config import RetrievalConfig

logger = logging.getLogger(__name__)

FLAT = "flat"
CHROMA = "chroma"


class SearchHits(NamedTuple):
    labels: list[int]
    distances: list[float]

    @classmethod
    def empty(cls) -> "SearchHits":
        return cls(labels=[], distances=[])


class VectorIndex(ABC):
    def __init__(self) -> None:
        self._dimension: Optional[int] = None

    @property
    def dimension(self) -> Optional[int]:
        """Dimensionality fixed by the first insert (None while empty)."""
        return self._dimension

    @abstractmethod
    def __len__(self) -> int: ...

    @abstractmethod
    def _add(self, label: int, vector: np.ndarray) -> None: ...

    @abstractmethod
    def _search(self, query: np.ndarray, k: int) -> SearchHits: ...

    def drop(self) -> None:
        """Release backend resources; the index must not be used afterwards."""

    def insert(self, vector: Sequence[float]) -> int:
        """Append a vector and return its label."""
        array = self._as_vector(vector)
        if self._dimension is None:
            self._dimension = int(array.shape[0])
        elif array.shape[0] != self._dimension:
            raise DimensionMismatchError(self._dimension, int(array.shape[0]))
        label = len(self)
        self._add(label, array)
        return label

    def insert_many(self, vectors: Sequence[Sequence[float]]) -> list[int]:
        return [self.insert(vector) for vector in vectors]

    def search(self, query: Sequence[float], k: int) -> SearchHits:
        """Return up to k nearest labels with their distances, closest first."""
        if k <= 0 or len(self) == 0:
            return SearchHits.empty()
        array = self._as_vector(query)
        if array.shape[0] != self._dimension:
            raise DimensionMismatchError(self._dimension, int(array.shape[0]))
        return self._search(array, min(k, len(self)))

    @staticmethod
    def _as_vector(vector: Sequence[float]) -> np.ndarray:
        try:
            array = np.asarray(vector, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Vector must be a sequence of numbers: {e}") from e
        if array.ndim != 1 or array.shape[0] == 0:
            raise InvalidArgumentError(
                f"Vector must be a non-empty 1-D sequence, got shape {array.shape}"
            )
        return array


class FlatL2Index(VectorIndex):
    """Brute-force index holding all vectors in one growing numpy matrix."""

    def __init__(self) -> None:
        super().__init__()
        self._rows: list[np.ndarray] = []
        self._matrix: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self._rows)

    def _add(self, label: int, vector: np.ndarray) -> None:
        self._rows.append(vector)
        self._matrix = None

    def _vectors(self) -> np.ndarray:
        if self._matrix is None:
            self._matrix = np.vstack(self._rows)
        return self._matrix

    def _search(self, query: np.ndarray, k: int) -> SearchHits:
        diff = self._vectors() - query
        distances = np.einsum("ij,ij->i", diff, diff)
        # stable sort keeps insertion order among equal distances
        order = np.argsort(distances, kind="stable")[:k]
        return SearchHits(
            labels=[int(i) for i in order],
            distances=[float(distances[i]) for i in order],
        )

    def drop(self) -> None:
        self._rows = []
        self._matrix = None


class ChromaVectorIndex(VectorIndex):
    """
    Index backed by a ChromaDB collection (l2 space).

    Chroma ids are the string labels. Queries fetch every entry and re-sort
    by (distance, label): HNSW ordering alone does not guarantee the
    tie-break rule, and the corpus is small enough for that to be cheap.
    """

    def __init__(
        self,
        collection_name: Optional[str] = None,
        chroma_client: Optional[chromadb.ClientAPI] = None,
    ):
        super().__init__()
        self._client = chroma_client or chromadb.EphemeralClient()
        self.collection_name = collection_name or f"policy_chunks_{uuid.uuid4().hex[:8]}"
        self._collection = self._client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "l2"},
        )
        self._count = self._collection.count()
        if self._count:
            raise InvalidArgumentError(
                f"Collection '{self.collection_name}' already holds {self._count} vectors"
            )

    def __len__(self) -> int:
        return self._count

    def _add(self, label: int, vector: np.ndarray) -> None:
        self._collection.add(ids=[str(label)], embeddings=[vector.tolist()])
        self._count += 1

    def _search(self, query: np.ndarray, k: int) -> SearchHits:
        raw = self._collection.query(
            query_embeddings=[query.tolist()],
            n_results=self._count,
            include=["distances"],
        )
        if not raw["ids"] or not raw["ids"][0]:
            return SearchHits.empty()
        pairs = sorted(
            (max(float(distance), 0.0), int(chunk_id))
            for chunk_id, distance in zip(raw["ids"][0], raw["distances"][0])
        )[:k]
        return SearchHits(
            labels=[label for _, label in pairs],
            distances=[distance for distance, _ in pairs],
        )

    def drop(self) -> None:
        try:
            self._client.delete_collection(self.collection_name)
        except Exception as e:
            logger.warning("Could not delete collection %s: %s", self.collection_name, e)
        self._count = 0


def create_vector_index(
    config: Optional["RetrievalConfig"] = None,
    chroma_client: Optional[chromadb.ClientAPI] = None,
) -> VectorIndex:
    """Build a fresh, empty index for the configured backend."""
    backend = config.index_backend if config else FLAT
    if backend == FLAT:
        return FlatL2Index()
    if backend == CHROMA:
        prefix = config.collection_name if config else "policy_chunks"
        return ChromaVectorIndex(
            collection_name=f"{prefix}_{uuid.uuid4().hex[:8]}",
            chroma_client=chroma_client,
        )
    raise InvalidArgumentError(f"Unknown index backend '{backend}', expected 'flat' or 'chroma'")
