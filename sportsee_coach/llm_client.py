"""
SportSee Coach LLM Client Interface
===================================

Provider-agnostic LLM interface: send chat messages, receive text.
Supports Mistral (chat completions over HTTP) and Gemini.

Transport failures, timeouts, upstream errors and empty replies all raise
LLMError; the orchestrator turns them into a fallback reply.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, Optional, Dict, Any, List

import requests
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions


DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    input_tokens: int
    output_tokens: int
    model: str
    metadata: Optional[Dict[str, Any]] = None


class LLMError(Exception):
    """The LLM could not produce a usable reply."""

    def __init__(self, message: str, is_timeout: bool = False, status_code: Optional[int] = None):
        super().__init__(message)
        self.is_timeout = is_timeout
        self.status_code = status_code


class LLMClient(Protocol):
    """
    Protocol for LLM clients.
    All implementations must provide generate() method.
    """

    model_name: str

    def generate(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.2,
        model: Optional[str] = None
    ) -> LLMResponse:
        """Generate a reply to role/content messages."""
        ...


class MistralClient:
    """Mistral chat-completions client."""

    API_URL = "https://api.mistral.ai/v1/chat/completions"

    def __init__(
        self,
        api_key: str,
        model: str = "mistral-small-latest",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.2,
        model: Optional[str] = None
    ) -> LLMResponse:
        model = model or self.model_name
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            resp = self.session.post(self.API_URL, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            logging.warning(f"Mistral request timed out after {self.timeout}s")
            raise LLMError("Request timed out", is_timeout=True) from e
        except requests.RequestException as e:
            logging.error(f"Mistral request failed: {e}")
            raise LLMError(f"Upstream AI service unreachable: {e}") from e

        if not resp.ok:
            logging.error(f"Mistral upstream error {resp.status_code} {resp.reason}: {resp.text[:200]}")
            raise LLMError(f"Upstream AI service error: {resp.reason}", status_code=resp.status_code)

        try:
            data = resp.json()
            text = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError("Malformed upstream response") from e
        if not text.strip():
            raise LLMError("Empty reply from AI service")

        usage = data.get("usage") or {}
        return LLMResponse(
            text=text,
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            model=data.get("model") or model,
            metadata={"id": data.get("id")},
        )


class GeminiClient:
    """Gemini LLM client implementation."""

    def __init__(self, api_key: str, model: str = "gemini-1.5-flash", timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        genai.configure(api_key=api_key)

    def generate(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.2,
        model: Optional[str] = None
    ) -> LLMResponse:
        """Generate response using Gemini. System messages become the system instruction."""
        model = model or self.model_name
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        contents = [
            {"role": "model" if m["role"] == "assistant" else "user", "parts": [m["content"]]}
            for m in messages if m["role"] != "system"
        ]

        generative_model = genai.GenerativeModel(model_name=model, system_instruction=system or None)
        config = genai.GenerationConfig(max_output_tokens=max_tokens, temperature=temperature)

        try:
            response = generative_model.generate_content(
                contents,
                generation_config=config,
                request_options={"timeout": self.timeout}
            )
        except google_exceptions.DeadlineExceeded as e:
            logging.warning(f"Gemini request timed out after {self.timeout}s")
            raise LLMError("Request timed out", is_timeout=True) from e
        except google_exceptions.GoogleAPIError as e:
            logging.error(f"Gemini request failed: {e}")
            raise LLMError(f"Upstream AI service error: {e}") from e

        # Blocked responses or empty candidates
        if not response.candidates or not response.candidates[0].content.parts:
            finish_reason = response.candidates[0].finish_reason if response.candidates else "UNKNOWN"
            raise LLMError(f"Model returned no content (finish_reason: {finish_reason})")

        input_tokens = 0
        output_tokens = 0
        if hasattr(response, 'usage_metadata'):
            input_tokens = getattr(response.usage_metadata, 'prompt_token_count', 0)
            output_tokens = getattr(response.usage_metadata, 'candidates_token_count', 0)

        return LLMResponse(
            text=response.text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model
        )


class MockLLMClient:
    """Mock LLM client for testing: returns scripted replies in order, or raises `error`."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[LLMError] = None):
        self.model_name = "mock"
        self.replies = list(replies or ["Mock response."])
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    @property
    def last_messages(self) -> Optional[List[Dict[str, str]]]:
        return self.calls[-1] if self.calls else None

    def generate(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.2,
        model: Optional[str] = None
    ) -> LLMResponse:
        self.calls.append(messages)
        if self.error:
            raise self.error
        text = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return LLMResponse(
            text=text,
            input_tokens=sum(len(m["content"]) for m in messages) // 4,
            output_tokens=len(text) // 4,
            model=model or self.model_name
        )


def create_llm_client(settings) -> LLMClient:
    """Build the client for settings.LLM_PROVIDER. Raises ValueError if its API key is missing."""
    api_key = settings.llm_api_key()
    if not api_key:
        raise ValueError(f"Missing API key for provider '{settings.LLM_PROVIDER}'")
    if settings.LLM_PROVIDER == "gemini":
        return GeminiClient(api_key, model=settings.GEMINI_MODEL, timeout=settings.LLM_TIMEOUT_SECONDS)
    return MistralClient(api_key, model=settings.MISTRAL_MODEL, timeout=settings.LLM_TIMEOUT_SECONDS)
