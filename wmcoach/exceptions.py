"""
Exceptions raised by the working-memory engine.

- WorkingMemoryError: base class for every engine error
- ConfigNotFoundError: exercise or support tool id not in its catalog
- UnsupportedExerciseError: exercise family has no stimulus generator
- InvalidSessionStateError: session operation not valid in its current state
- PersistenceError: a store could not read or write a document
"""

from __future__ import annotations

from typing import Optional


class WorkingMemoryError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigNotFoundError(WorkingMemoryError, KeyError):
    """Raised when an exercise or support tool id is not in the catalog."""

    def __init__(self, config_id: str, catalog: str = "exercise"):
        self.config_id = config_id
        self.catalog = catalog
        super().__init__(
            f"Unknown {catalog} '{config_id}'",
            details={"catalog": catalog, "id": config_id},
        )


class UnsupportedExerciseError(WorkingMemoryError):
    """Raised when a session is requested for a family without a stimulus generator."""


class InvalidSessionStateError(WorkingMemoryError):
    """
    Raised when a session operation does not match the session's state.

    Covers completing a session twice, unknown session ids and phase
    violations (e.g. responding outside recall). State is left untouched.
    """


class PersistenceError(WorkingMemoryError):
    """Raised when a profile or scratch document cannot be read or written."""
