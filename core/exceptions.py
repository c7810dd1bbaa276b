"""Custom exceptions for the screenplay director engine."""

from typing import Any


class DirectorException(Exception):
    """Base exception for the director engine."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(DirectorException):
    """Raised when caller input is rejected before any model call."""

    pass


class OffsetOutOfRangeException(DirectorException, ValueError):
    """Raised when a cursor offset or line index lies outside the document."""

    pass


class GenerationRejectedException(DirectorException):
    """Raised when generated content fails the hard validation checks."""

    pass


class LLMException(DirectorException):
    """Raised when LLM provider interaction fails."""

    pass
