"""
Dinner Rota Bot — LLM Backends.

The only thing the bot asks a language model is "classify this message", so
every backend here answers one kind of request: a system prompt plus the
user's text in, a single JSON object out. Output is capped at
MAX_OUTPUT_TOKENS and sampled at temperature 0 so the same message classifies
the same way twice.

Supports: gemini (default), anthropic, openai, cohere. SDKs are imported
only when their backend is selected.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 256


class LLMError(Exception):
    """Raised when the configured provider fails to answer."""


class LLMBackend:
    """A provider that returns the model's JSON answer as text."""

    name = ""
    default_model = ""

    def __init__(self, api_key: str, model: str) -> None:
        self.model = model or self.default_model
        self._client = self._make_client(api_key)

    def _make_client(self, api_key: str):
        raise NotImplementedError

    async def ask_json(self, system: str, text: str) -> str:
        raise NotImplementedError


class GeminiBackend(LLMBackend):
    name = "gemini"
    default_model = "gemini-2.0-flash"

    def _make_client(self, api_key: str):
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        return genai

    async def ask_json(self, system: str, text: str) -> str:
        genai = self._client
        # System instruction carries today's date, so the model is per request.
        gm = genai.GenerativeModel(model_name=self.model, system_instruction=system)
        response = await gm.generate_content_async(
            text,
            generation_config=genai.types.GenerationConfig(
                max_output_tokens=MAX_OUTPUT_TOKENS,
                temperature=0,
                response_mime_type="application/json",
            ),
        )
        return response.text


class AnthropicBackend(LLMBackend):
    name = "anthropic"
    default_model = "claude-haiku-4-5-20251001"

    def _make_client(self, api_key: str):
        import anthropic

        return anthropic.AsyncAnthropic(api_key=api_key)

    async def ask_json(self, system: str, text: str) -> str:
        # Prefilling "{" keeps the answer a bare object.
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=0,
            system=system,
            messages=[
                {"role": "user", "content": text},
                {"role": "assistant", "content": "{"},
            ],
        )
        return "{" + response.content[0].text


class OpenAIBackend(LLMBackend):
    name = "openai"
    default_model = "gpt-4o-mini"

    def _make_client(self, api_key: str):
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=api_key)

    async def ask_json(self, system: str, text: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": text},
            ],
        )
        return response.choices[0].message.content or ""


class CohereBackend(LLMBackend):
    name = "cohere"
    default_model = "command-a-03-2025"

    def _make_client(self, api_key: str):
        import cohere

        return cohere.AsyncClientV2(api_key=api_key)

    async def ask_json(self, system: str, text: str) -> str:
        response = await self._client.chat(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": text},
            ],
        )
        return response.message.content[0].text


BACKENDS: dict[str, type[LLMBackend]] = {
    cls.name: cls
    for cls in (GeminiBackend, AnthropicBackend, OpenAIBackend, CohereBackend)
}


def build_backend(provider: str, api_key: str, model: str = "") -> LLMBackend:
    """Instantiate the backend registered under `provider`.

    Raises:
        ValueError: If the provider name is not supported.
    """
    name = provider.strip().lower()
    if name not in BACKENDS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={name!r}. Supported: {', '.join(BACKENDS)}"
        )
    backend = BACKENDS[name](api_key, model)
    logger.info("LLM provider: %s, model: %s", name, backend.model)
    return backend


_backend: LLMBackend | None = None


def _configured_backend() -> LLMBackend:
    global _backend

    if _backend is None:
        from dinnerbot.config import settings

        _backend = build_backend(
            settings.LLM_PROVIDER, settings.LLM_API_KEY, settings.LLM_MODEL,
        )
    return _backend


async def classify_json(system: str, text: str) -> str:
    """Ask the configured provider to answer `text` with one JSON object.

    Raises:
        LLMError: If the provider is misconfigured or the call fails.
    """
    try:
        return await _configured_backend().ask_json(system, text)
    except Exception as exc:
        raise LLMError(f"{type(exc).__name__}: {exc}") from exc
