"""
Entry facade: generate a letter, open its refinement session, and keep the
canonical document in sync with refinement replies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from .errors import GenerationFailure, RefinementFailure, SessionNotOpenError, ValidationError
from .models import (
    ConversationTurn,
    Document,
    GenerationInput,
    OrchestratorSnapshot,
    OrchestratorStatus,
    RefinementOutcome,
    ReplyVerdict,
    Speaker,
)
from .prompts import REFINEMENT_ERROR_APOLOGY
from .refinement_session import RefinementSessionManager
from .reply_classifier import ReplyClassifier, SalutationClassifier
from .structured_generator import StructuredGenerator, validate_input

logger = logging.getLogger(__name__)


class LetterOrchestrator:
    """
    Owns exactly one Document and one refinement session.

    All state lives on the instance, so several orchestrators can coexist. The
    instance is meant to be driven from a single event loop.
    """

    def __init__(
        self,
        generator: Optional[StructuredGenerator] = None,
        sessions: Optional[RefinementSessionManager] = None,
        classifier: Optional[ReplyClassifier] = None,
    ) -> None:
        self._generator = generator or StructuredGenerator()
        self._sessions = sessions or RefinementSessionManager()
        self._classifier = classifier or SalutationClassifier()
        self._document: Optional[Document] = None
        self._status = OrchestratorStatus.IDLE
        self._last_error: Optional[str] = None
        self._generation_seq = 0
        self._inflight: Optional[asyncio.Future] = None
        self._superseded: Set[asyncio.Future] = set()

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------
    @property
    def status(self) -> OrchestratorStatus:
        return self._status

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def transcript(self) -> List[ConversationTurn]:
        return self._sessions.transcript()

    def copy_text(self) -> str:
        """Current letter text for the clipboard; empty before the first generation."""
        return self._document.primary_text if self._document else ""

    def snapshot(self) -> OrchestratorSnapshot:
        current = self._sessions.current
        return OrchestratorSnapshot(
            status=self._status,
            document=self._document,
            transcript=self.transcript(),
            session_id=current.handle.session_id if current else None,
            last_error=self._last_error,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def generate(self, data: GenerationInput, *, timeout: Optional[float] = None) -> Document:
        validate_input(data)

        if self._inflight is not None and not self._inflight.done():
            logger.info("Superseding in-flight generation #%s", self._generation_seq)
            self._superseded.add(self._inflight)
            self._inflight.cancel()

        self._generation_seq += 1
        ticket = self._generation_seq
        previous_status = self._status
        self._status = OrchestratorStatus.GENERATING
        task = asyncio.ensure_future(self._generator.generate(data))
        self._inflight = task

        try:
            document = await _with_timeout(task, timeout)
        except asyncio.CancelledError:
            superseded = task in self._superseded
            self._superseded.discard(task)
            if superseded and not _cancel_requested():
                raise GenerationFailure("Generation superseded by a newer request", code="superseded")
            if ticket == self._generation_seq:
                self._inflight = None
                self._status = self._settled_status(previous_status)
            raise
        except asyncio.TimeoutError as exc:
            self._fail_generation(ticket, "Letter generation timed out")
            raise GenerationFailure("Letter generation timed out", code="timeout") from exc
        except GenerationFailure as exc:
            self._fail_generation(ticket, str(exc))
            raise
        except Exception as exc:
            logger.exception("Letter generator raised")
            self._fail_generation(ticket, str(exc))
            raise GenerationFailure("Letter generation failed") from exc

        if ticket != self._generation_seq:
            logger.info("Discarding result of superseded generation #%s", ticket)
            raise GenerationFailure("Generation superseded by a newer request", code="superseded")

        self._inflight = None
        self._document = document
        self._sessions.open(document.primary_text)
        self._status = OrchestratorStatus.READY
        self._last_error = None
        logger.info("Letter generated (%d chars)", len(document.primary_text))
        return document

    async def refine(self, message: str, *, timeout: Optional[float] = None) -> RefinementOutcome:
        current = self._sessions.current
        if current is None or self._document is None:
            raise SessionNotOpenError("Generate a letter before refining it")
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Refinement message is empty")

        handle = current.handle
        if self._status is not OrchestratorStatus.GENERATING:
            self._status = OrchestratorStatus.REFINING

        try:
            try:
                reply = await _with_timeout(self._sessions.send(handle, message), timeout)
            except asyncio.TimeoutError:
                logger.warning("Refinement turn timed out in session %s", handle.session_id)
                return self._refinement_failed(handle, "Refinement request timed out")
            except RefinementFailure as exc:
                return self._refinement_failed(handle, str(exc))

            if not self._sessions.is_current(handle):
                logger.info("Dropping reply for superseded session %s", handle.session_id)
                return RefinementOutcome(reply=reply)

            verdict = self._classifier.classify(reply)
            applied = verdict is ReplyVerdict.FULL_REPLACEMENT
            if applied:
                self._document = self._document.with_primary_text(reply)
            logger.debug("Refinement reply classified as %s", verdict.value)
            return RefinementOutcome(reply=reply, verdict=verdict, applied=applied)
        finally:
            self._settle_refining()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _fail_generation(self, ticket: int, message: str) -> None:
        if ticket == self._generation_seq:
            self._inflight = None
            self._status = OrchestratorStatus.ERROR
            self._last_error = message

    def _refinement_failed(self, handle, message: str) -> RefinementOutcome:
        self._sessions.record(handle, Speaker.ASSISTANT, REFINEMENT_ERROR_APOLOGY)
        self._last_error = message
        return RefinementOutcome(reply=REFINEMENT_ERROR_APOLOGY, failed=True)

    def _settle_refining(self) -> None:
        if self._status is OrchestratorStatus.REFINING:
            self._status = OrchestratorStatus.READY

    def _settled_status(self, previous: OrchestratorStatus) -> OrchestratorStatus:
        if previous is OrchestratorStatus.GENERATING:
            return OrchestratorStatus.READY if self._document else OrchestratorStatus.IDLE
        if previous is OrchestratorStatus.REFINING:
            return OrchestratorStatus.READY
        return previous


async def _with_timeout(awaitable, timeout: Optional[float]):
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


def _cancel_requested() -> bool:
    """True when the running task itself has a pending cancel (3.11+)."""
    task = asyncio.current_task()
    cancelling = getattr(task, "cancelling", None)
    return bool(cancelling and cancelling())
