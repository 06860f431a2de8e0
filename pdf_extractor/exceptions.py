"""
Errors raised while loading policy documents.

    ExtractionError
    └── PDFError
        ├── PDFNotFoundError     the configured file does not exist
        └── PDFCorruptedError    PyMuPDF could not parse the bytes

The retrieval store treats every ExtractionError as fatal for the running
ingestion and stays empty afterwards.
"""

from __future__ import annotations

from typing import Iterator, Optional


class ExtractionError(Exception):
    """
    Text could not be obtained from a document.

    Attributes:
        message: Human-readable error description
        details: Underlying cause, rendered after the message (optional)
    """

    def __init__(
        self,
        message: str = "Document text extraction failed",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class PDFError(ExtractionError):
    """A problem tied to one PDF file; `path` names it."""

    def __init__(
        self,
        message: str = "PDF error",
        path: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.path = path
        super().__init__(f"{message} [{path}]" if path else message, details)


class PDFNotFoundError(PDFError):
    def __init__(self, path: str):
        super().__init__(f"PDF file not found: {path}", path=path)


class PDFCorruptedError(PDFError):
    """PyMuPDF rejected the document; its error is kept as `original_error`."""

    def __init__(self, path: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(
            f"PDF file is corrupted or unreadable: {path}",
            path=path,
            details=str(original_error) if original_error else None,
        )


def _causes(error: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = getattr(current, "original_error", None) or current.__cause__


def format_error_chain(error: BaseException) -> str:
    """
    Render an error and what caused it, one line per link:

        ExtractionError: Failed to extract text from 'ECMS Guidelines'
          └─ KeyError: 'page'
    """
    lines = []
    for depth, exc in enumerate(_causes(error)):
        marker = "  " * depth + "└─ " if depth else ""
        lines.append(f"{marker}{type(exc).__name__}: {exc}")
    return "\n".join(lines)
