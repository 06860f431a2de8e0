"""
Pytest fixtures for the retrieval store tests.
"""

import hashlib
import threading

import fitz
import numpy as np
import pytest

from pdf_extractor.sources import DocumentSource
from retrieval.config import RetrievalConfig
from retrieval.embedder import EmbeddingProvider, clear_embedder_cache
from retrieval.store import RetrievalStore

FAKE_DIMENSIONS = 8


class HashEmbedder(EmbeddingProvider):
    """Deterministic fake: identical text gives an identical unit vector."""

    def __init__(self, dimensions: int = FAKE_DIMENSIONS):
        super().__init__("hash-embedder")
        self.size = dimensions
        self.calls = 0
        self._lock = threading.Lock()

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls += 1
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self.size)
        vector /= np.linalg.norm(vector)
        self._dimensions = self.size
        return vector.tolist()

    def health_check(self) -> dict:
        return {"healthy": True, "model": self.model, "error": ""}


class PlainTextExtractor:
    """Treats document bytes as UTF-8 text."""

    def extract(self, name: str, data: bytes) -> str:
        return data.decode("utf-8")


def numbered_words(prefix: str, count: int) -> str:
    return " ".join(f"{prefix}{i}" for i in range(count))


def make_pdf(pages: list[str]) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(autouse=True)
def _fresh_embedder_cache():
    clear_embedder_cache()
    yield
    clear_embedder_cache()


@pytest.fixture
def config() -> RetrievalConfig:
    return RetrievalConfig(embed_delay_seconds=0.0)


@pytest.fixture
def embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def make_sources(tmp_path):
    """Write texts to files and return DocumentSources pointing at them."""

    def _make(documents: dict[str, str]) -> list[DocumentSource]:
        sources = []
        for i, (name, text) in enumerate(documents.items()):
            path = tmp_path / f"document_{i}.txt"
            path.write_text(text, encoding="utf-8")
            sources.append(DocumentSource(name=name, path=str(path)))
        return sources

    return _make


@pytest.fixture
def two_documents(make_sources) -> list[DocumentSource]:
    """1000 words -> 3 chunks, 600 words -> 2 chunks (chunk size 500, overlap 50)."""
    return make_sources({
        "Startup India Seed Fund Scheme": numbered_words("seed", 1000),
        "ECMS Guidelines": numbered_words("ecms", 600),
    })


@pytest.fixture
def make_store(config, embedder, two_documents):
    def _make(**overrides) -> RetrievalStore:
        kwargs = dict(
            config=config,
            embedder=embedder,
            sources=two_documents,
            extractor=PlainTextExtractor(),
        )
        kwargs.update(overrides)
        return RetrievalStore(**kwargs)

    return _make


@pytest.fixture
def store(make_store) -> RetrievalStore:
    return make_store()


@pytest.fixture
def ready_store(store) -> RetrievalStore:
    store.initialize()
    return store
