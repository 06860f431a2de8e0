"""
PDF Extractor - Text extraction for the policy document corpus

Loads the configured guideline PDFs and turns them into plain text that the
retrieval store chunks, embeds and indexes.

Quick Start:
    from pdf_extractor import PDFTextExtractor, default_sources

    extractor = PDFTextExtractor()
    for source in default_sources("assets"):
        text = source.load_text(extractor)
        print(f"{source.name}: {len(text)} characters")
"""

__version__ = "1.0.0"

from .exceptions import (
    ExtractionError,
    PDFCorruptedError,
    PDFError,
    PDFNotFoundError,
    format_error_chain,
)
from .sources import (
    DEFAULT_DOCUMENTS,
    DocumentSource,
    TextExtractor,
    default_sources,
    parse_sources,
)
from .text_extractor import PDFTextExtractor

__all__ = [
    "__version__",
    "ExtractionError",
    "PDFError",
    "PDFNotFoundError",
    "PDFCorruptedError",
    "format_error_chain",
    "DEFAULT_DOCUMENTS",
    "DocumentSource",
    "TextExtractor",
    "default_sources",
    "parse_sources",
    "PDFTextExtractor",
]
