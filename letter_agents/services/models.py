"""
Shared data models for the letter generation layer.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GenerationInput:
    """Raw notes supplied by the user: who is recommending, and about what."""

    subject_context: str
    source_material: str


@dataclass(frozen=True)
class Document:
    """
    Canonical three-field letter artifact.

    Only ``primary_text`` changes after generation; refinements produce a new
    instance via :meth:`with_primary_text`.
    """

    logic_draft: str
    primary_text: str
    critique: str

    # Wire names used by the response schema.
    FIELD_MAP = {
        "logic_draft": "chineseLogicDraft",
        "primary_text": "englishLetter",
        "critique": "grammarAnalysis",
    }

    def with_primary_text(self, text: str) -> "Document":
        return replace(self, primary_text=text)

    def to_dict(self) -> Dict[str, str]:
        return {
            "logic_draft": self.logic_draft,
            "primary_text": self.primary_text,
            "critique": self.critique,
        }


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    speaker: Speaker
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"speaker": self.speaker.value, "text": self.text}


@dataclass(frozen=True)
class SessionHandle:
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ReplyVerdict(str, Enum):
    FULL_REPLACEMENT = "full_replacement"
    INCIDENTAL = "incidental"


class OrchestratorStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    REFINING = "refining"
    ERROR = "error"


@dataclass(frozen=True)
class RefinementOutcome:
    """Result of one refinement turn as seen by the caller."""

    reply: str
    verdict: Optional[ReplyVerdict] = None
    applied: bool = False
    failed: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "reply": self.reply,
            "verdict": self.verdict.value if self.verdict else None,
            "applied": self.applied,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class OrchestratorSnapshot:
    """Read-only view of orchestrator state for rendering."""

    status: OrchestratorStatus
    document: Optional[Document]
    transcript: List[ConversationTurn]
    session_id: Optional[str] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "document": self.document.to_dict() if self.document else None,
            "transcript": [turn.to_dict() for turn in self.transcript],
            "session_id": self.session_id,
            "last_error": self.last_error,
        }
