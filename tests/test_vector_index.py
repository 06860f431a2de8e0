"""Tests for retrieval.vector_index: flat numpy and ChromaDB backends."""

import uuid

import chromadb
import numpy as np
import pytest

from retrieval.config import RetrievalConfig
from retrieval.exceptions import DimensionMismatchError, InvalidArgumentError
from retrieval.vector_index import (
    ChromaVectorIndex,
    FlatL2Index,
    SearchHits,
    create_vector_index,
)


@pytest.fixture(params=["flat", "chroma"])
def index(request):
    if request.param == "flat":
        idx = FlatL2Index()
    else:
        idx = ChromaVectorIndex(
            collection_name=f"test_{uuid.uuid4().hex[:8]}",
            chroma_client=chromadb.EphemeralClient(),
        )
    yield idx
    idx.drop()


# ---------------------------------------------------------------------------
# Shared contract
# ---------------------------------------------------------------------------


class TestInsert:
    def test_labels_follow_insertion_order(self, index):
        labels = [index.insert([float(i), 0.0]) for i in range(3)]
        assert labels == [0, 1, 2]
        assert len(index) == 3

    def test_insert_many(self, index):
        assert index.insert_many([[1.0, 0.0], [0.0, 1.0]]) == [0, 1]

    def test_first_insert_fixes_dimension(self, index):
        assert index.dimension is None
        index.insert([0.1, 0.2, 0.3])
        assert index.dimension == 3

    def test_dimension_mismatch(self, index):
        index.insert([1.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatchError) as exc_info:
            index.insert([1.0, 0.0])
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2
        assert len(index) == 1

    @pytest.mark.parametrize("vector", [[], [[1.0, 2.0]], ["a", "b"]])
    def test_malformed_vector(self, index, vector):
        with pytest.raises(InvalidArgumentError):
            index.insert(vector)


class TestSearch:
    def test_empty_index_returns_no_hits(self, index):
        assert index.search([1.0, 0.0], 5) == SearchHits.empty()

    def test_k_zero_returns_no_hits(self, index):
        index.insert([1.0, 0.0])
        hits = index.search([1.0, 0.0], 0)
        assert hits.labels == []
        assert hits.distances == []

    def test_nearest_first_with_squared_distances(self, index):
        index.insert_many([[3.0, 4.0], [0.0, 0.0], [1.0, 0.0]])

        hits = index.search([0.0, 0.0], 3)

        assert hits.labels == [1, 2, 0]
        assert hits.distances == pytest.approx([0.0, 1.0, 25.0], abs=1e-4)

    def test_k_larger_than_index(self, index):
        index.insert_many([[1.0, 0.0], [0.0, 1.0]])
        hits = index.search([1.0, 0.0], 10)
        assert len(hits.labels) == 2

    def test_k_limits_results(self, index):
        index.insert_many([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])
        hits = index.search([0.0, 0.0], 2)
        assert hits.labels == [0, 1]

    def test_ties_go_to_lower_label(self, index):
        index.insert_many([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
        hits = index.search([0.0, 0.0], 3)
        assert hits.labels == [0, 1, 2]

    def test_duplicate_vectors_keep_insertion_order(self, index):
        index.insert_many([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]])
        hits = index.search([1.0, 0.0], 3)
        assert hits.labels == [0, 2, 1]

    def test_query_dimension_mismatch(self, index):
        index.insert([1.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            index.search([1.0, 0.0, 0.0], 1)


# ---------------------------------------------------------------------------
# Backend specifics
# ---------------------------------------------------------------------------


class TestFlatL2Index:
    def test_matches_brute_force(self):
        rng = np.random.default_rng(7)
        vectors = rng.standard_normal((60, 16)).astype(np.float32)
        query = rng.standard_normal(16).astype(np.float32)
        index = FlatL2Index()
        index.insert_many(vectors.tolist())

        hits = index.search(query.tolist(), 10)

        expected = np.sum((vectors - query) ** 2, axis=1)
        assert hits.labels == list(np.argsort(expected, kind="stable")[:10])
        assert hits.distances == pytest.approx(sorted(expected)[:10], rel=1e-5)
        assert hits.distances == sorted(hits.distances)

    def test_insert_after_search(self):
        index = FlatL2Index()
        index.insert([0.0, 0.0])
        index.search([0.0, 0.0], 1)
        index.insert([0.5, 0.0])
        assert index.search([0.5, 0.0], 1).labels == [1]

    def test_drop_empties(self):
        index = FlatL2Index()
        index.insert([1.0])
        index.drop()
        assert len(index) == 0
        assert index.search([1.0], 1) == SearchHits.empty()


class TestChromaVectorIndex:
    def test_rejects_populated_collection(self):
        client = chromadb.EphemeralClient()
        name = f"test_{uuid.uuid4().hex[:8]}"
        first = ChromaVectorIndex(collection_name=name, chroma_client=client)
        first.insert([1.0, 0.0])

        with pytest.raises(InvalidArgumentError):
            ChromaVectorIndex(collection_name=name, chroma_client=client)
        first.drop()

    def test_drop_deletes_collection(self):
        client = chromadb.EphemeralClient()
        name = f"test_{uuid.uuid4().hex[:8]}"
        index = ChromaVectorIndex(collection_name=name, chroma_client=client)
        index.insert([1.0, 0.0])

        index.drop()

        assert len(index) == 0
        assert name not in [getattr(c, "name", c) for c in client.list_collections()]


class TestCreateVectorIndex:
    def test_default_is_flat(self):
        assert isinstance(create_vector_index(), FlatL2Index)

    def test_chroma_backend(self):
        config = RetrievalConfig(index_backend="chroma", collection_name="unit")
        index = create_vector_index(config, chroma_client=chromadb.EphemeralClient())
        try:
            assert isinstance(index, ChromaVectorIndex)
            assert index.collection_name.startswith("unit_")
        finally:
            index.drop()

    def test_each_call_builds_fresh_chroma_collection(self):
        config = RetrievalConfig(index_backend="chroma")
        client = chromadb.EphemeralClient()
        first = create_vector_index(config, chroma_client=client)
        second = create_vector_index(config, chroma_client=client)
        try:
            assert first.collection_name != second.collection_name
        finally:
            first.drop()
            second.drop()

    def test_unknown_backend(self):
        with pytest.raises(InvalidArgumentError, match="faiss"):
            create_vector_index(RetrievalConfig(index_backend="faiss"))
