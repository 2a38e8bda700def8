import json

import pytest

from letter_agents.llm.gemini_client import GeminiError
from letter_agents.services.errors import GenerationFailure, ValidationError
from letter_agents.services.models import Document, GenerationInput
from letter_agents.services.prompts import LETTER_SCHEMA, SALUTATION
from letter_agents.services.structured_generator import StructuredGenerator, parse_document
from tests.fakes import FakeCompletionProvider, letter_payload


@pytest.fixture
def sample_input() -> GenerationInput:
    return GenerationInput(
        subject_context="Dr. Lin, CS Dept",
        source_material="Built a distributed cache, debugged a race condition, showed persistence",
    )


@pytest.mark.asyncio
async def test_generate_returns_complete_document(sample_input):
    provider = FakeCompletionProvider()
    document = await StructuredGenerator(provider).generate(sample_input)

    assert isinstance(document, Document)
    assert document.primary_text.startswith("To Whom It May Concern,")
    assert "On the one hand," in document.primary_text
    assert "On the other hand," in document.primary_text
    assert document.logic_draft and document.critique


@pytest.mark.asyncio
async def test_request_carries_instruction_contract(sample_input):
    provider = FakeCompletionProvider()
    await StructuredGenerator(provider, temperature=0.7).generate(sample_input)

    call = provider.calls[0]
    instruction = call["system_instruction"]
    assert f'"{SALUTATION},"' in instruction
    assert '"On the one hand,"' in instruction
    assert '"On the other hand,"' in instruction
    assert "Yours truly," in instruction
    assert "Do NOT include a date" in instruction
    assert "Professor Info: Dr. Lin, CS Dept" in instruction
    assert call["response_schema"] is LETTER_SCHEMA
    assert call["temperature"] > 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "subject_context, source_material",
    [("", "material"), ("Dr. Lin", "   "), ("\n\t", "")],
)
async def test_blank_input_rejected_before_upstream_call(subject_context, source_material):
    provider = FakeCompletionProvider()
    with pytest.raises(ValidationError):
        await StructuredGenerator(provider).generate(GenerationInput(subject_context, source_material))
    assert provider.calls == []


@pytest.mark.asyncio
async def test_upstream_error_becomes_generation_failure(sample_input):
    provider = FakeCompletionProvider(GeminiError("quota", status_code=429))
    with pytest.raises(GenerationFailure) as excinfo:
        await StructuredGenerator(provider).generate(sample_input)
    assert excinfo.value.details["status_code"] == 429
    assert isinstance(excinfo.value.__cause__, GeminiError)


@pytest.mark.asyncio
async def test_unexpected_provider_error_becomes_generation_failure(sample_input):
    provider = FakeCompletionProvider(RuntimeError("socket closed"))
    with pytest.raises(GenerationFailure):
        await StructuredGenerator(provider).generate(sample_input)


@pytest.mark.parametrize(
    "raw, code",
    [
        ("", "empty_response"),
        ("not json", "invalid_json"),
        ("[1, 2]", "invalid_json"),
        (letter_payload(grammarAnalysis=None), "incomplete_payload"),
        (letter_payload(englishLetter=42), "incomplete_payload"),
        (letter_payload(chineseLogicDraft="   "), "incomplete_payload"),
    ],
)
def test_parse_document_rejects_unusable_payloads(raw, code):
    with pytest.raises(GenerationFailure) as excinfo:
        parse_document(raw)
    assert excinfo.value.code == code


def test_parse_document_reports_missing_fields():
    with pytest.raises(GenerationFailure) as excinfo:
        parse_document(json.dumps({"englishLetter": "To Whom It May Concern,"}))
    assert excinfo.value.details["fields"] == ["chineseLogicDraft", "grammarAnalysis"]
