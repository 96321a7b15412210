"""Exceptions raised by the grading document model, editor and producer."""

from typing import Optional


class GradingError(Exception):
    """Base exception for grading errors."""
    pass


class InvalidEditError(GradingError):
    """Raised when an edit operation is rejected; the document is left unchanged."""
    pass


class InvalidIndexError(InvalidEditError, IndexError):
    """Raised when an edit references a problem or error that does not exist."""
    def __init__(self, kind: str, index: int, message: str = ""):
        self.kind = kind
        self.index = index
        self.message = message or f"No {kind} at index {index}"
        super().__init__(self.message)


class ProducerError(GradingError):
    """Base exception for failures of the external grading producer."""
    def __init__(self, message: str = "", details: Optional[str] = None):
        self.message = message or "Grading did not complete"
        self.details = details
        super().__init__(self.message)


class ProducerUnavailable(ProducerError):
    """Raised when the grading service cannot be reached or returns an error. Retryable."""
    pass


class MalformedProducerResponse(ProducerError):
    """Raised when the grading service answers with a document of the wrong shape."""
    pass
