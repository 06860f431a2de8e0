"""
Custom Exceptions for the Retrieval Store.

Exception Hierarchy:
    RetrievalError (base)
    ├── EmbeddingError
    │   └── EmbeddingConnectionError
    ├── DimensionMismatchError
    ├── NotInitializedError
    └── InvalidArgumentError (also a ValueError)

    ExtractionError (from pdf_extractor, re-exported here)

Only NotInitializedError is meant to be handled by callers (initialize and
retry). DimensionMismatchError means the embedding provider broke its
contract and must not be swallowed.
"""

from __future__ import annotations

from typing import Optional

from pdf_extractor.exceptions import ExtractionError, format_error_chain


class RetrievalError(Exception):
    """
    Base exception for all retrieval-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A retrieval error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


class EmbeddingError(RetrievalError):
    """
    Raised when an embedding could not be computed.

    Attributes:
        model: Name of the embedding model (if known)
        original_error: The underlying backend exception
    """

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.model = model
        self.original_error = original_error
        if model:
            message = f"{message} [model={model}]"
        details = str(original_error) if original_error else None
        super().__init__(message, details)


class EmbeddingConnectionError(EmbeddingError):
    """Raised when the embedding backend cannot be reached."""


class DimensionMismatchError(RetrievalError):
    """
    Raised when a vector does not have the index dimensionality.

    Attributes:
        expected: Dimensionality fixed by the first inserted vector
        actual: Dimensionality of the offending vector
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}"
        )


class NotInitializedError(RetrievalError):
    """Raised when the store is searched before it is ready."""

    def __init__(
        self,
        message: str = "Vector store not initialized. Please initialize first.",
    ):
        super().__init__(message)


class InvalidArgumentError(RetrievalError, ValueError):
    """Raised for malformed arguments (chunking parameters, batch input, ...)."""


__all__ = [
    "RetrievalError",
    "EmbeddingError",
    "EmbeddingConnectionError",
    "DimensionMismatchError",
    "NotInitializedError",
    "InvalidArgumentError",
    "ExtractionError",
    "format_error_chain",
]
