"""Exceptions raised by the quiz core and translated by the API layer."""

from __future__ import annotations


class QuizMasterError(Exception):
    """Base class for domain errors."""


class NotFoundError(QuizMasterError, LookupError):
    """Raised when a referenced user, quiz or category does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} with id {identifier} not found")
        self.kind = kind
        self.identifier = identifier


class QuizValidationError(QuizMasterError, ValueError):
    """Raised when submitted quiz content or attempt data is malformed."""


class ConflictError(QuizMasterError):
    """Raised when a new record clashes with an existing one."""
