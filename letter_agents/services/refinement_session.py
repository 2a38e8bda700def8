"""
Conversational refinement context seeded with the current letter.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from letter_agents.llm.providers import ChannelFactory, ConversationChannel, GeminiChannelFactory

from .errors import RefinementFailure, SessionNotOpenError
from .models import ConversationTurn, SessionHandle, Speaker
from .prompts import EMPTY_REPLY_APOLOGY, SESSION_GREETING, build_refinement_instruction

logger = logging.getLogger(__name__)


@dataclass
class RefinementSession:
    """One open channel plus its append-only transcript."""

    handle: SessionHandle
    seed_text: str
    channel: ConversationChannel
    history: List[ConversationTurn] = field(default_factory=list)

    def record(self, speaker: Speaker, text: str) -> None:
        self.history.append(ConversationTurn(speaker=speaker, text=text))


class RefinementSessionManager:
    """
    Owns at most one :class:`RefinementSession`. Opening a new session
    invalidates the previous handle.
    """

    def __init__(self, channel_factory: Optional[ChannelFactory] = None) -> None:
        self._channel_factory = channel_factory or GeminiChannelFactory()
        self._session: Optional[RefinementSession] = None

    @property
    def current(self) -> Optional[RefinementSession]:
        return self._session

    def open(self, seed_text: str) -> SessionHandle:
        channel = self._channel_factory.open_channel(build_refinement_instruction(seed_text))
        session = RefinementSession(handle=SessionHandle(), seed_text=seed_text, channel=channel)
        session.record(Speaker.ASSISTANT, SESSION_GREETING)
        previous = self._session
        self._session = session
        if previous is not None:
            logger.info("Refinement session %s replaced by %s", previous.handle.session_id, session.handle.session_id)
        else:
            logger.info("Refinement session %s opened", session.handle.session_id)
        return session.handle

    def close(self) -> None:
        self._session = None

    def is_current(self, handle: Optional[SessionHandle]) -> bool:
        return handle is not None and self._session is not None and self._session.handle == handle

    def transcript(self) -> List[ConversationTurn]:
        if self._session is None:
            return []
        return list(self._session.history)

    def record(self, handle: SessionHandle, speaker: Speaker, text: str) -> None:
        """Append a turn to the session owning ``handle``; stale handles are ignored."""
        if self.is_current(handle):
            self._session.record(speaker, text)

    async def send(self, handle: Optional[SessionHandle], message: str) -> str:
        session = self._require(handle)
        session.record(Speaker.USER, message)
        try:
            reply = await session.channel.send(message)
        except Exception as exc:
            logger.warning("Refinement turn failed in session %s: %s", session.handle.session_id, exc)
            raise RefinementFailure("Upstream refinement request failed") from exc
        reply = reply or EMPTY_REPLY_APOLOGY
        session.record(Speaker.ASSISTANT, reply)
        return reply

    def _require(self, handle: Optional[SessionHandle]) -> RefinementSession:
        if self._session is None:
            raise SessionNotOpenError("Chat session not initialized")
        if handle is None or handle != self._session.handle:
            raise SessionNotOpenError(
                "Session handle is stale",
                details={"session_id": handle.session_id if handle else None},
            )
        return self._session
