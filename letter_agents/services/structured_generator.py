"""
One-shot structured generation of the three-field letter document.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from letter_agents.llm.gemini_client import GeminiError
from letter_agents.llm.providers import CompletionProvider, GeminiCompletionProvider

from .errors import GenerationFailure, ValidationError
from .models import Document, GenerationInput
from .prompts import GENERATION_REQUEST, LETTER_SCHEMA, build_generation_instruction

logger = logging.getLogger(__name__)


def validate_input(data: GenerationInput) -> None:
    missing = [
        name
        for name, value in (("subject_context", data.subject_context), ("source_material", data.source_material))
        if not isinstance(value, str) or not value.strip()
    ]
    if missing:
        raise ValidationError(
            "Please enter both professor information and student material.",
            details={"missing": missing},
        )


class StructuredGenerator:
    """
    Issues a single schema-constrained request and turns the reply into a
    :class:`Document`. The schema is re-checked on receipt; nothing is guessed.
    """

    def __init__(self, provider: Optional[CompletionProvider] = None, *, temperature: float = 0.7) -> None:
        self._provider = provider or GeminiCompletionProvider()
        self._temperature = temperature

    async def generate(self, data: GenerationInput) -> Document:
        validate_input(data)
        instruction = build_generation_instruction(data.subject_context, data.source_material)
        try:
            raw = await self._provider.complete_json(
                system_instruction=instruction,
                prompt=GENERATION_REQUEST,
                response_schema=LETTER_SCHEMA,
                temperature=self._temperature,
            )
        except GeminiError as exc:
            logger.warning("Letter generation failed upstream (status=%s): %s", exc.status_code, exc)
            raise GenerationFailure("Upstream generation request failed", details={"status_code": exc.status_code}) from exc
        except Exception as exc:
            logger.exception("Letter generation provider raised")
            raise GenerationFailure("Upstream generation request failed") from exc

        return parse_document(raw)


def parse_document(raw: Optional[str]) -> Document:
    if not raw or not raw.strip():
        raise GenerationFailure("No response generated", code="empty_response")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Letter payload is not valid JSON: %.200s", raw)
        raise GenerationFailure("Generated payload is not valid JSON", code="invalid_json") from exc
    if not isinstance(data, Mapping):
        raise GenerationFailure("Generated payload is not a JSON object", code="invalid_json")

    values = {}
    problems = []
    for attr, wire_name in Document.FIELD_MAP.items():
        value: Any = data.get(wire_name)
        if not isinstance(value, str) or not value.strip():
            problems.append(wire_name)
            continue
        values[attr] = value.strip()
    if problems:
        raise GenerationFailure(
            "Generated payload is missing required fields",
            code="incomplete_payload",
            details={"fields": problems},
        )
    return Document(**values)
