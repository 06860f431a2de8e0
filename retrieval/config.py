from dataclasses import dataclass
import os
from typing import Optional

from pdf_extractor.sources import DocumentSource, default_sources, parse_sources


@dataclass
class RetrievalConfig:
    assets_dir: str = "assets"
    documents: Optional[str] = None
    chunk_size: int = 500
    chunk_overlap: int = 50
    embedding_backend: str = "sentence-transformers"
    embedding_model: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434"
    embed_delay_seconds: float = 0.1
    embed_batch_size: int = 1
    index_backend: str = "flat"
    collection_name: str = "policy_chunks"
    default_top_k: int = 5
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    def document_sources(self) -> list[DocumentSource]:
        """Configured documents, or the bundled guideline PDFs in assets_dir."""
        if self.documents:
            return parse_sources(self.documents, self.assets_dir)
        return default_sources(self.assets_dir)

    @classmethod
    def from_env(cls) -> "RetrievalConfig":
        def _int(name: str, default: int) -> int:
            value = os.environ.get(name)
            return int(value) if value else default

        def _float(name: str, default: float) -> float:
            value = os.environ.get(name)
            return float(value) if value else default

        return cls(
            assets_dir=os.environ.get("RETRIEVAL_ASSETS_DIR", cls.assets_dir),
            documents=os.environ.get("RETRIEVAL_DOCUMENTS") or None,
            chunk_size=_int("RETRIEVAL_CHUNK_SIZE", cls.chunk_size),
            chunk_overlap=_int("RETRIEVAL_CHUNK_OVERLAP", cls.chunk_overlap),
            embedding_backend=os.environ.get("RETRIEVAL_EMBEDDING_BACKEND", cls.embedding_backend),
            embedding_model=os.environ.get("RETRIEVAL_EMBEDDING_MODEL") or None,
            ollama_base_url=os.environ.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            embed_delay_seconds=_float("RETRIEVAL_EMBED_DELAY_SECONDS", cls.embed_delay_seconds),
            embed_batch_size=_int("RETRIEVAL_EMBED_BATCH_SIZE", cls.embed_batch_size),
            index_backend=os.environ.get("RETRIEVAL_INDEX_BACKEND", cls.index_backend),
            collection_name=os.environ.get("RETRIEVAL_COLLECTION_NAME", cls.collection_name),
            default_top_k=_int("RETRIEVAL_DEFAULT_TOP_K", cls.default_top_k),
            host=os.environ.get("RETRIEVAL_HOST", cls.host),
            port=_int("RETRIEVAL_PORT", cls.port),
            log_level=os.environ.get("RETRIEVAL_LOG_LEVEL", cls.log_level),
        )
