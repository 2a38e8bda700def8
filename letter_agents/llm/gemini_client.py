# letter_agents/llm/gemini_client.py
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests
from requests import Response

logger = logging.getLogger(__name__)


# --------------------------
# REST endpoints (v1beta)
# --------------------------
_GEN_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

_DEFAULT_TEXT_MODEL = "gemini-2.5-flash"


# --------------------------
# Error / retry primitives
# --------------------------
@dataclass
class RetryConfig:
    max_attempts: int = 3
    backoff_factor: float = 1.6
    retry_statuses: Tuple[int, ...] = (408, 429, 500, 502, 503, 504)


# Generative calls are not idempotent, so letter traffic goes out exactly once.
NO_RETRY = RetryConfig(max_attempts=1)


class GeminiError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Optional[Dict] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


def _default_session_factory() -> requests.Session:
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(max_retries=0)  # manual retries
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _post(
    url: str,
    api_key: str,
    payload: Dict,
    *,
    timeout: int = 60,
    retry: Optional[RetryConfig] = None,
    session_factory: Callable[[], requests.Session] = _default_session_factory,
) -> Dict:
    """POST to Google Generative Language REST API with retry + richer errors."""

    retry = retry or RetryConfig()
    session = session_factory()
    headers = {
        "Content-Type": "application/json; charset=utf-8",
        "x-goog-api-key": api_key,
    }

    attempt = 0
    last_error: Optional[Exception] = None

    while attempt < retry.max_attempts:
        attempt += 1
        try:
            resp: Response = session.post(url, headers=headers, data=json.dumps(payload), timeout=timeout)
        except requests.RequestException as exc:
            last_error = exc
            logger.warning("Gemini HTTP error on attempt %s: %s", attempt, exc)
            if attempt >= retry.max_attempts:
                raise GeminiError("Gemini HTTP request failed", payload={"error": str(exc)}) from exc
            time.sleep(retry.backoff_factor ** (attempt - 1))
            continue

        if resp.status_code // 100 == 2:
            try:
                return resp.json()
            except ValueError as exc:
                raise GeminiError("Gemini returned a non-JSON body", status_code=resp.status_code) from exc

        # non-2xx handling
        try:
            data = resp.json()
        except ValueError:
            data = {"error": {"code": resp.status_code, "message": resp.text}}

        if resp.status_code in retry.retry_statuses and attempt < retry.max_attempts:
            sleep_for = retry.backoff_factor ** (attempt - 1)
            logger.info("Retrying Gemini call (%s) after status %s (sleep %.2fs)", attempt, resp.status_code, sleep_for)
            time.sleep(sleep_for)
            last_error = GeminiError("Gemini REST error", status_code=resp.status_code, payload=data)
            continue

        raise GeminiError(
            f"Gemini REST error: {json.dumps(data, ensure_ascii=False)}",
            status_code=resp.status_code,
            payload=data,
        )

    raise GeminiError("Gemini request failed after retries", payload={"last_error": str(last_error) if last_error else None})


def _first_candidate_text(data: Mapping[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(part.get("text", "")) for part in parts if isinstance(part, Mapping))


def _system_instruction(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text or not text.strip():
        return None
    return {"parts": [{"text": text.strip()}]}


# --------------------------
# Text generation client
# --------------------------
@dataclass
class GeminiText:
    """
    Lightweight text-generation client for Gemini REST API.

    ``generate_json`` asks the model for schema-constrained output and returns the
    raw JSON text; parsing and validation stay with the caller.
    """

    api_key: Optional[str] = None
    model: str = _DEFAULT_TEXT_MODEL
    timeout: int = 60  # seconds
    retry: RetryConfig = field(default_factory=RetryConfig)
    session_factory: Callable[[], requests.Session] = _default_session_factory

    def __post_init__(self) -> None:
        self.api_key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not set")

    def generate_json(
        self,
        prompt: str,
        *,
        response_schema: Mapping[str, Any],
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
    ) -> str:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
                "candidateCount": 1,
                "responseMimeType": "application/json",
                "responseSchema": dict(response_schema),
            },
        }
        instruction = _system_instruction(system_instruction)
        if instruction:
            payload["systemInstruction"] = instruction

        data = _post(
            _GEN_URL.format(model=self.model),
            self.api_key,
            payload,
            timeout=self.timeout,
            retry=self.retry,
            session_factory=self.session_factory,
        )
        return _first_candidate_text(data)


# --------------------------
# Multi-turn chat client
# --------------------------
@dataclass
class GeminiChat:
    """
    Stateful chat over the stateless REST endpoint.

    History is kept client side and replayed on every turn; a turn that fails
    upstream is not added to the history.
    """

    system_instruction: str
    api_key: Optional[str] = None
    model: str = _DEFAULT_TEXT_MODEL
    temperature: float = 0.7
    max_output_tokens: int = 2048
    timeout: int = 60
    retry: RetryConfig = field(default_factory=RetryConfig)
    session_factory: Callable[[], requests.Session] = _default_session_factory
    _history: List[Dict[str, Any]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.api_key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not set")

    @property
    def history(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._history]

    def send(self, message: str) -> str:
        user_turn = {"role": "user", "parts": [{"text": message}]}
        payload: Dict[str, Any] = {
            "contents": [*self._history, user_turn],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
                "candidateCount": 1,
            },
        }
        instruction = _system_instruction(self.system_instruction)
        if instruction:
            payload["systemInstruction"] = instruction

        data = _post(
            _GEN_URL.format(model=self.model),
            self.api_key,
            payload,
            timeout=self.timeout,
            retry=self.retry,
            session_factory=self.session_factory,
        )
        text = _first_candidate_text(data)
        self._history.append(user_turn)
        self._history.append({"role": "model", "parts": [{"text": text}]})
        return text


# --------------------------
# Tiny convenience façade
# --------------------------
@dataclass
class GeminiClient:
    """
    Shared configuration for the one-shot text client and chat channels.
    """

    api_key: Optional[str] = None
    text_model: str = _DEFAULT_TEXT_MODEL
    timeout: int = 60
    retry: RetryConfig = field(default_factory=RetryConfig)
    session_factory: Callable[[], requests.Session] = _default_session_factory

    def __post_init__(self) -> None:
        key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not key:
            raise ValueError("GEMINI_API_KEY is not set")
        self.api_key = key
        self.text = GeminiText(
            api_key=key,
            model=self.text_model,
            timeout=self.timeout,
            retry=self.retry,
            session_factory=self.session_factory,
        )

    def open_chat(self, system_instruction: str, *, temperature: float = 0.7) -> GeminiChat:
        return GeminiChat(
            system_instruction=system_instruction,
            api_key=self.api_key,
            model=self.text_model,
            temperature=temperature,
            timeout=self.timeout,
            retry=self.retry,
            session_factory=self.session_factory,
        )
