# letter_agents/llm/providers.py
"""
Async provider interfaces used by the letter services, plus Gemini-backed
implementations that run the blocking REST client off the event loop.
"""
from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from .gemini_client import NO_RETRY, GeminiChat, GeminiClient


@runtime_checkable
class CompletionProvider(Protocol):
    async def complete_json(
        self,
        *,
        system_instruction: str,
        prompt: str,
        response_schema: Mapping[str, Any],
        temperature: float,
    ) -> str:
        ...


@runtime_checkable
class ConversationChannel(Protocol):
    async def send(self, message: str) -> str:
        ...


@runtime_checkable
class ChannelFactory(Protocol):
    def open_channel(self, system_instruction: str) -> ConversationChannel:
        ...


class GeminiCompletionProvider:
    """Schema-constrained one-shot generation over :class:`GeminiText`."""

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client or GeminiClient(retry=NO_RETRY)

    async def complete_json(
        self,
        *,
        system_instruction: str,
        prompt: str,
        response_schema: Mapping[str, Any],
        temperature: float,
    ) -> str:
        return await asyncio.to_thread(
            self._client.text.generate_json,
            prompt,
            response_schema=response_schema,
            system_instruction=system_instruction,
            temperature=temperature,
        )


class GeminiChannel:
    def __init__(self, chat: GeminiChat) -> None:
        self._chat = chat

    async def send(self, message: str) -> str:
        return await asyncio.to_thread(self._chat.send, message)


class GeminiChannelFactory:
    def __init__(self, client: Optional[GeminiClient] = None, *, temperature: float = 0.7) -> None:
        self._client = client or GeminiClient(retry=NO_RETRY)
        self._temperature = temperature

    def open_channel(self, system_instruction: str) -> GeminiChannel:
        return GeminiChannel(self._client.open_chat(system_instruction, temperature=self._temperature))
