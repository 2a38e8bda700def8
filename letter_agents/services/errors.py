"""
Error taxonomy for letter generation and refinement.
"""
from __future__ import annotations

from typing import Mapping, Optional


class LetterError(RuntimeError):
    """Base error; every failure is scoped to a single operation."""

    default_code = "letter_error"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Mapping[str, object]] = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.details = dict(details or {})


class ValidationError(LetterError):
    """Caller supplied blank input; raised before any upstream call."""

    default_code = "invalid_input"


class GenerationFailure(LetterError):
    """Upstream generation errored or returned an unusable payload."""

    default_code = "generation_failed"


class SessionNotOpenError(LetterError):
    """Refinement requested without a live session, or with a stale handle."""

    default_code = "session_not_open"


class RefinementFailure(LetterError):
    """Upstream error while relaying a refinement turn."""

    default_code = "refinement_failed"
