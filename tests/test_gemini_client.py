import json
from types import SimpleNamespace

import pytest
import requests

from letter_agents.llm.gemini_client import GeminiChat, GeminiError, GeminiText, RetryConfig, NO_RETRY


class _FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


def _candidate(text: str):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _session_factory(responses, calls):
    def post(url, headers=None, data=None, timeout=60):  # pylint: disable=unused-argument
        calls.append({"url": url, "headers": headers, "payload": json.loads(data)})
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    return lambda: SimpleNamespace(post=post)


def test_generate_json_sends_schema_and_system_instruction():
    calls = []
    client = GeminiText(
        api_key="k",
        session_factory=_session_factory([_FakeResponse(_candidate('{"a": "b"}'))], calls),
    )

    raw = client.generate_json(
        "Generate it.",
        response_schema={"type": "OBJECT"},
        system_instruction="Be formal.",
        temperature=0.7,
    )

    assert raw == '{"a": "b"}'
    payload = calls[0]["payload"]
    assert calls[0]["url"].endswith("gemini-2.5-flash:generateContent")
    assert calls[0]["headers"]["x-goog-api-key"] == "k"
    assert payload["generationConfig"]["responseMimeType"] == "application/json"
    assert payload["generationConfig"]["responseSchema"] == {"type": "OBJECT"}
    assert payload["generationConfig"]["temperature"] == 0.7
    assert payload["systemInstruction"] == {"parts": [{"text": "Be formal."}]}
    assert payload["contents"][0]["parts"][0]["text"] == "Generate it."


def test_generate_json_returns_empty_text_without_candidates():
    calls = []
    client = GeminiText(api_key="k", session_factory=_session_factory([_FakeResponse({"candidates": []})], calls))
    assert client.generate_json("x", response_schema={}) == ""


def test_non_retryable_status_raises_gemini_error():
    calls = []
    client = GeminiText(
        api_key="k",
        session_factory=_session_factory([_FakeResponse({"error": {"message": "bad"}}, status_code=400)], calls),
    )

    with pytest.raises(GeminiError) as excinfo:
        client.generate_json("x", response_schema={})
    assert excinfo.value.status_code == 400
    assert len(calls) == 1


def test_no_retry_config_surfaces_first_transient_failure():
    calls = []
    client = GeminiText(
        api_key="k",
        retry=NO_RETRY,
        session_factory=_session_factory([_FakeResponse({}, status_code=503), _FakeResponse(_candidate("late"))], calls),
    )

    with pytest.raises(GeminiError) as excinfo:
        client.generate_json("x", response_schema={})
    assert excinfo.value.status_code == 503
    assert len(calls) == 1


def test_transport_error_retried_when_configured(monkeypatch):
    monkeypatch.setattr("letter_agents.llm.gemini_client.time.sleep", lambda _s: None)
    calls = []
    client = GeminiText(
        api_key="k",
        retry=RetryConfig(max_attempts=2),
        session_factory=_session_factory([requests.ConnectionError("boom"), _FakeResponse(_candidate("ok"))], calls),
    )

    assert client.generate_json("x", response_schema={}) == "ok"
    assert len(calls) == 2


def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(ValueError):
        GeminiText()


def test_chat_replays_history_on_each_turn():
    calls = []
    chat = GeminiChat(
        system_instruction="Current Letter Context: ...",
        api_key="k",
        session_factory=_session_factory(
            [_FakeResponse(_candidate("First answer")), _FakeResponse(_candidate("Second answer"))],
            calls,
        ),
    )

    assert chat.send("Hello") == "First answer"
    assert chat.send("Shorter please") == "Second answer"

    second = calls[1]["payload"]
    assert [turn["role"] for turn in second["contents"]] == ["user", "model", "user"]
    assert second["contents"][1]["parts"][0]["text"] == "First answer"
    assert second["systemInstruction"]["parts"][0]["text"] == "Current Letter Context: ..."
    assert len(chat.history) == 4


def test_chat_failed_turn_not_added_to_history():
    calls = []
    chat = GeminiChat(
        system_instruction="ctx",
        api_key="k",
        retry=NO_RETRY,
        session_factory=_session_factory([_FakeResponse({}, status_code=500)], calls),
    )

    with pytest.raises(GeminiError):
        chat.send("Hello")
    assert chat.history == []
