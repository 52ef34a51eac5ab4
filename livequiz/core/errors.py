"""Error taxonomy for quiz sessions."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for all quiz session errors."""


class NotFoundError(QuizError):
    """Raised when a quiz or session id is unknown."""


class InvalidStateError(QuizError):
    """Raised when an operation is attempted in the wrong lifecycle phase."""


class SessionClosedError(InvalidStateError):
    """Raised when a finished session is asked to accept admissions or answers."""


class LateAnswerError(QuizError):
    """Raised when an answer arrives after the current question's time window."""
