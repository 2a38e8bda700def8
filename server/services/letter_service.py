from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Coroutine, Mapping, TypeVar

from letter_agents.llm.gemini_client import GeminiClient, RetryConfig
from letter_agents.llm.providers import GeminiChannelFactory, GeminiCompletionProvider
from letter_agents.services.errors import LetterError
from letter_agents.services.letter_orchestrator import LetterOrchestrator
from letter_agents.services.models import Document, GenerationInput, OrchestratorSnapshot, RefinementOutcome
from letter_agents.services.refinement_session import RefinementSessionManager
from letter_agents.services.reply_classifier import build_classifier
from letter_agents.services.structured_generator import StructuredGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Orchestrator calls enforce the timeout on the loop; this only bounds a wedged loop.
_LOOP_GRACE_SECONDS = 5.0


class LetterService:
    """
    Thin adaptor that exposes one LetterOrchestrator to the synchronous Flask
    layer. Every orchestrator call runs on a single background event loop.
    """

    def __init__(self, orchestrator: LetterOrchestrator, *, timeout: float = 180.0) -> None:
        self._orchestrator = orchestrator
        self._timeout = timeout
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="letter-service-loop", daemon=True)
        self._thread.start()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LetterService":
        client = GeminiClient(
            text_model=str(config.get("LLM_MODEL", "gemini-2.5-flash")),
            timeout=int(config.get("LLM_TIMEOUT_SECONDS", 60)),
            retry=RetryConfig(max_attempts=max(1, int(config.get("LLM_MAX_ATTEMPTS", 1)))),
        )
        temperature = float(config.get("LLM_TEMPERATURE", 0.7))
        orchestrator = LetterOrchestrator(
            generator=StructuredGenerator(GeminiCompletionProvider(client), temperature=temperature),
            sessions=RefinementSessionManager(GeminiChannelFactory(client, temperature=temperature)),
            classifier=build_classifier(str(config.get("REPLY_CLASSIFIER", "salutation"))),
        )
        return cls(orchestrator, timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 180)))

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _call(self, coro: Coroutine[Any, Any, T]) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=self._timeout + _LOOP_GRACE_SECONDS)
        except FutureTimeout as exc:
            future.cancel()
            raise LetterError("Letter service did not respond in time", code="timeout") from exc

    def generate(self, subject_context: str, source_material: str) -> Document:
        data = GenerationInput(subject_context=subject_context, source_material=source_material)
        return self._call(self._orchestrator.generate(data, timeout=self._timeout))

    def refine(self, message: str) -> RefinementOutcome:
        return self._call(self._orchestrator.refine(message, timeout=self._timeout))

    def snapshot(self) -> OrchestratorSnapshot:
        return self._call(self._snapshot())

    async def _snapshot(self) -> OrchestratorSnapshot:
        return self._orchestrator.snapshot()

    def shutdown(self) -> None:
        if self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        if not self._thread.is_alive():
            self._loop.close()
        logger.debug("Letter service loop stopped")
