from .services.errors import (
    GenerationFailure,
    LetterError,
    RefinementFailure,
    SessionNotOpenError,
    ValidationError,
)
from .services.letter_orchestrator import LetterOrchestrator
from .services.models import Document, GenerationInput, RefinementOutcome, ReplyVerdict

__all__ = [
    "Document",
    "GenerationFailure",
    "GenerationInput",
    "LetterError",
    "LetterOrchestrator",
    "RefinementFailure",
    "RefinementOutcome",
    "ReplyVerdict",
    "SessionNotOpenError",
    "ValidationError",
]
