"""
Document sources for the retrieval store.

A DocumentSource names one policy PDF and knows where its bytes live. The
default set mirrors the guideline documents shipped in the `assets/`
directory of the funding assistant.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .exceptions import PDFError, PDFNotFoundError

DEFAULT_DOCUMENTS: dict[str, str] = {
    "Startup India Seed Fund Scheme": "Guidelines_for_Startup_India_Seed_Fund_Scheme.pdf",
    "ECMS Guidelines": "ECMS Guidelines_26.04.2025.pdf",
}


class TextExtractor(Protocol):
    def extract(self, name: str, data: bytes) -> str: ...


@dataclass(frozen=True)
class DocumentSource:
    """A named document and the path of its raw bytes."""

    name: str
    path: str

    def read_bytes(self) -> bytes:
        path = Path(self.path)
        if not path.exists():
            raise PDFNotFoundError(str(path))
        try:
            return path.read_bytes()
        except OSError as exc:
            raise PDFError(
                f"Cannot read document '{self.name}'",
                path=str(path),
                details=str(exc),
            ) from exc

    def load_text(self, extractor: TextExtractor) -> str:
        return extractor.extract(self.name, self.read_bytes())


def default_sources(assets_dir: str | Path) -> list[DocumentSource]:
    base = Path(assets_dir)
    return [
        DocumentSource(name=name, path=str(base / filename))
        for name, filename in DEFAULT_DOCUMENTS.items()
    ]


def parse_sources(entries: str, assets_dir: str | Path | None = None) -> list[DocumentSource]:
    """
    Parse a "Name=path;Other Name=other.pdf" list of documents.

    Relative paths are resolved against `assets_dir` when given.
    """
    sources: list[DocumentSource] = []
    for entry in entries.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, raw_path = entry.partition("=")
        if not sep or not name.strip() or not raw_path.strip():
            raise ValueError(f"Invalid document entry '{entry}', expected 'Name=path'")
        path = Path(raw_path.strip())
        if assets_dir is not None and not path.is_absolute():
            path = Path(assets_dir) / path
        sources.append(DocumentSource(name=name.strip(), path=str(path)))
    return sources
