"""
Strategies deciding whether a refinement reply is a whole new letter.
"""
from __future__ import annotations

import logging
from typing import Dict, Protocol, Sequence, Type, runtime_checkable

from .models import ReplyVerdict
from .prompts import CONCLUSION_TRANSITION, FIRST_TRANSITION, SALUTATION, SECOND_TRANSITION

logger = logging.getLogger(__name__)


@runtime_checkable
class ReplyClassifier(Protocol):
    def classify(self, reply: str) -> ReplyVerdict:
        ...


class SalutationClassifier:
    """
    Any reply containing the salutation counts as a full replacement, even when
    the salutation only appears inside a quoted excerpt.
    """

    def __init__(self, marker: str = SALUTATION) -> None:
        self._marker = marker

    def classify(self, reply: str) -> ReplyVerdict:
        if self._marker in (reply or ""):
            return ReplyVerdict.FULL_REPLACEMENT
        return ReplyVerdict.INCIDENTAL


class StructuralClassifier:
    """Requires the salutation and every transition literal to be present."""

    def __init__(
        self,
        markers: Sequence[str] = (SALUTATION, FIRST_TRANSITION, SECOND_TRANSITION, CONCLUSION_TRANSITION),
    ) -> None:
        self._markers = tuple(markers)

    def classify(self, reply: str) -> ReplyVerdict:
        text = reply or ""
        missing = [marker for marker in self._markers if marker not in text]
        if missing:
            logger.debug("Reply lacks letter markers %s", missing)
            return ReplyVerdict.INCIDENTAL
        return ReplyVerdict.FULL_REPLACEMENT


CLASSIFIERS: Dict[str, Type] = {
    "salutation": SalutationClassifier,
    "structural": StructuralClassifier,
}


def build_classifier(name: str) -> ReplyClassifier:
    try:
        return CLASSIFIERS[name]()
    except KeyError as exc:
        raise KeyError(f"Reply classifier '{name}' is not registered") from exc
