from .letter_service import LetterService

__all__ = [
    "LetterService",
]
