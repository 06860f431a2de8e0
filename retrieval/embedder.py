"""
Embedding Providers - Text to dense vector conversion

Maps a text string to a fixed-length embedding vector. Two backends:

- SentenceTransformerEmbedder: local all-MiniLM-L6-v2 (mean pooling,
  L2-normalized). Default; no external service needed.
- OllamaEmbedder: embeddings from a local Ollama server (nomic-embed-text).

Design:
- The expensive resource (model or client) is created lazily on first use.
  A lock-guarded double check makes concurrent first calls share one load.
- get_embedder() hands out one provider per (backend, model, url) per process.
- Every backend failure surfaces as EmbeddingError.

Usage:
    from retrieval.embedder import SentenceTransformerEmbedder

    embedder = SentenceTransformerEmbedder()
    vector = embedder.embed("Seed fund eligibility criteria")
    vectors = embedder.embed_batch(["Text 1", "Text 2"])
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Sequence

import ollama
from sentence_transformers import SentenceTransformer

from .exceptions import EmbeddingConnectionError, EmbeddingError, InvalidArgumentError

if TYPE_CHECKING:
    from .config import RetrievalConfig

logger = logging.getLogger(__name__)

SENTENCE_TRANSFORMERS = "sentence-transformers"
OLLAMA = "ollama"

DEFAULT_MODELS = {
    SENTENCE_TRANSFORMERS: "sentence-transformers/all-MiniLM-L6-v2",
    OLLAMA: "nomic-embed-text",
}


def _require_text(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidArgumentError("Cannot embed empty text")
    return text


def _require_batch(texts: Any) -> list[str]:
    if not isinstance(texts, (list, tuple)):
        raise InvalidArgumentError(
            f"Batch input must be a list of strings, got {type(texts).__name__}"
        )
    return [_require_text(t) for t in texts]


def _is_connection_failure(error: Exception) -> bool:
    return (
        isinstance(error, ConnectionError)
        or "Connection" in type(error).__name__
        or "refused" in str(error).lower()
    )


class EmbeddingProvider(ABC):
    """
    Contract the retrieval store depends on.

    Every vector returned within one provider has the same length; the
    length is exposed as `dimensions` once the first embedding was computed.
    """

    model: str

    def __init__(self, model: str):
        self.model = model
        self._dimensions: Optional[int] = None

    @property
    def dimensions(self) -> Optional[int]:
        """Return the embedding dimensions (available after first embed call)."""
        return self._dimensions

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single non-empty text."""

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed several texts; output order matches input order."""
        return [self.embed(text) for text in _require_batch(texts)]

    @abstractmethod
    def health_check(self) -> dict[str, Any]:
        """Report whether the backend is usable."""


class SentenceTransformerEmbedder(EmbeddingProvider):
    """
    Local embeddings via sentence-transformers.

    The model is downloaded/loaded on the first embed call, which may take a
    moment; later calls are cheap.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODELS[SENTENCE_TRANSFORMERS],
        device: str = "cpu",
        normalize_embeddings: bool = True,
        batch_size: int = 16,
    ):
        super().__init__(model)
        self.device = device
        self.normalize_embeddings = normalize_embeddings
        self.batch_size = batch_size
        self._model: Optional[SentenceTransformer] = None
        self._model_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def _get_model(self) -> SentenceTransformer:
        if self._model is None:
            with self._model_lock:
                if self._model is None:
                    logger.info("Loading embedding model %s (first time may take a moment)...", self.model)
                    try:
                        self._model = SentenceTransformer(self.model, device=self.device)
                    except Exception as e:
                        raise EmbeddingError(
                            "Failed to load embedding model",
                            model=self.model,
                            original_error=e,
                        ) from e
                    logger.info("Embedding model %s loaded", self.model)
        return self._model

    def _encode(self, texts: list[str]) -> list[list[float]]:
        model = self._get_model()
        try:
            embeddings = model.encode(
                texts,
                batch_size=self.batch_size,
                normalize_embeddings=self.normalize_embeddings,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(model=self.model, original_error=e) from e
        vectors = [[float(x) for x in row] for row in embeddings]
        if vectors:
            self._dimensions = len(vectors[0])
        return vectors

    def embed(self, text: str) -> list[float]:
        return self._encode([_require_text(text)])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        batch = _require_batch(texts)
        if not batch:
            return []
        return self._encode(batch)

    def health_check(self) -> dict[str, Any]:
        result = {
            "healthy": False,
            "backend": SENTENCE_TRANSFORMERS,
            "model": self.model,
            "model_loaded": self.is_loaded,
            "error": "",
        }
        try:
            model = self._get_model()
            result["model_loaded"] = True
            result["dimensions"] = int(model.get_sentence_embedding_dimension())
            result["healthy"] = True
        except EmbeddingError as e:
            result["error"] = str(e)
        return result


class OllamaEmbedder(EmbeddingProvider):
    """
    Generates text embeddings using a local Ollama model.

    The embedder connects to a running Ollama instance and uses a specified
    embedding model to convert text into dense vector representations.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODELS[OLLAMA],
        base_url: str = "http://localhost:11434",
    ):
        """
        Initialize the embedder.

        Args:
            model: Ollama model name for embeddings.
            base_url: Ollama API base URL.
        """
        super().__init__(model)
        self.base_url = base_url
        self._client: Optional[ollama.Client] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> ollama.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = ollama.Client(host=self.base_url)
        return self._client

    def _request(self, payload: str | list[str]) -> list[list[float]]:
        try:
            response = self._get_client().embed(model=self.model, input=payload)
            embeddings = response["embeddings"]
        except ollama.ResponseError as e:
            raise EmbeddingError(
                "Ollama embedding failed",
                model=self.model,
                original_error=e,
            ) from e
        except Exception as e:
            if _is_connection_failure(e):
                raise EmbeddingConnectionError(
                    f"Cannot connect to Ollama at {self.base_url}. "
                    f"Is Ollama running? Start it with: ollama serve",
                    model=self.model,
                    original_error=e,
                ) from e
            raise EmbeddingError(model=self.model, original_error=e) from e

        if embeddings:
            self._dimensions = len(embeddings[0])
        return [list(map(float, e)) for e in embeddings]

    def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Raises:
            InvalidArgumentError: If the text is empty.
            EmbeddingConnectionError: If Ollama is not reachable.
            EmbeddingError: If embedding generation fails.
        """
        embeddings = self._request(_require_text(text))
        if not embeddings:
            raise EmbeddingError("Ollama returned no embedding", model=self.model)
        return embeddings[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Uses Ollama's batch embedding API in a single request."""
        batch = _require_batch(texts)
        if not batch:
            return []
        embeddings = self._request(batch)
        if len(embeddings) != len(batch):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {len(batch)} texts",
                model=self.model,
            )
        return embeddings

    def health_check(self) -> dict[str, Any]:
        """
        Check if Ollama is running and the embedding model is available.

        Returns:
            Dict with 'healthy' (bool), 'ollama_running' (bool),
            'model_available' (bool), and 'error' (str, if any).
        """
        result = {
            "healthy": False,
            "backend": OLLAMA,
            "ollama_running": False,
            "model_available": False,
            "model": self.model,
            "error": "",
        }

        try:
            models = self._get_client().list()
            result["ollama_running"] = True

            model_names = [m.model for m in models.models]
            # "nomic-embed-text" matches "nomic-embed-text:latest"
            result["model_available"] = any(
                m.startswith(self.model) for m in model_names
            )

            if not result["model_available"]:
                result["error"] = (
                    f"Model '{self.model}' not found. "
                    f"Available: {model_names}. "
                    f"Pull it with: ollama pull {self.model}"
                )
            else:
                result["healthy"] = True

        except Exception as e:
            result["error"] = f"Cannot connect to Ollama: {e}"

        return result


def create_embedder(
    backend: str = SENTENCE_TRANSFORMERS,
    model: Optional[str] = None,
    base_url: str = "http://localhost:11434",
) -> EmbeddingProvider:
    if backend == SENTENCE_TRANSFORMERS:
        return SentenceTransformerEmbedder(model=model or DEFAULT_MODELS[backend])
    if backend == OLLAMA:
        return OllamaEmbedder(model=model or DEFAULT_MODELS[backend], base_url=base_url)
    raise InvalidArgumentError(
        f"Unknown embedding backend '{backend}', expected one of {sorted(DEFAULT_MODELS)}"
    )


_providers: dict[tuple[str, str, str], EmbeddingProvider] = {}
_providers_lock = threading.Lock()


def get_embedder(config: "RetrievalConfig") -> EmbeddingProvider:
    """Return the process-wide provider for the configured backend (created once)."""
    backend = config.embedding_backend
    model = config.embedding_model or DEFAULT_MODELS.get(backend, "")
    key = (backend, model, config.ollama_base_url)
    with _providers_lock:
        provider = _providers.get(key)
        if provider is None:
            provider = create_embedder(backend, model, config.ollama_base_url)
            _providers[key] = provider
        return provider


def clear_embedder_cache() -> None:
    with _providers_lock:
        _providers.clear()
