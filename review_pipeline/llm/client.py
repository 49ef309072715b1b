"""
LLM Client
==========
Asynchronous clients that send one prompt to a language model and return
the completion text.

Capability Interface:
    LLMClient.send_prompt(prompt, settings) -> str
    One implementation per provider, each paired with a settings variant
    from core/config.py. Call sites only ever see LLMClient.

Providers:
    - GeminiClient            — Google Gemini REST API (generateContent)
    - OpenAICompatibleClient  — /chat/completions endpoints (Groq, OpenRouter, ...)

Failure Contract (every failure is a typed LLMError):
    - AuthConfigurationError  — API key env var unset or blank
    - ProviderError           — non-2xx status (carries status + body),
                                or the request never completed
    - MalformedResponseError  — 2xx body without the expected completion path

Single Attempt:
    No retry and no timeout override; the transport default applies. The
    orchestrator decides what a failure means for the run.
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional, Type

import httpx

from review_pipeline.core.config import GeminiSettings, LLMSettings, OpenAICompatibleSettings
from review_pipeline.core.errors import (
    AuthConfigurationError,
    ConfigurationError,
    MalformedResponseError,
    ProviderError,
)

logger = logging.getLogger(__name__)


def resolve_api_key(settings: LLMSettings) -> str:
    """Read the API key from the environment variable named in settings."""
    value = os.environ.get(settings.api_key_env_var, "")
    if not value or not value.strip():
        raise AuthConfigurationError(
            f"API key not found in environment variable '{settings.api_key_env_var}'"
        )
    return value.strip()


class LLMClient(ABC):
    """
    Base class for provider clients.

    Usage:
        client = GeminiClient()
        text = await client.send_prompt("Review these issues...", settings.llm)
        await client.close()
    """

    provider_name: str = ""
    settings_type: Type[LLMSettings] = LLMSettings

    def __init__(self, http: Optional[httpx.AsyncClient] = None) -> None:
        self._http = http
        # An injected client belongs to the caller and is never closed here
        self._owns_http = http is None

    def accepts(self, settings: LLMSettings) -> bool:
        return isinstance(settings, self.settings_type)

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient()
            self._owns_http = True
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if not self._owns_http:
            return
        if self._http and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    async def send_prompt(self, prompt: str, settings: LLMSettings) -> str:
        """
        Send a prompt and return the completion text.

        Parameters
        ----------
        prompt : str
            Fully rendered prompt.
        settings : LLMSettings
            Provider settings; must be this client's settings variant.

        Returns
        -------
        str
            Completion text, stripped.

        Raises
        ------
        AuthConfigurationError, ProviderError, MalformedResponseError
        """
        if not self.accepts(settings):
            raise ConfigurationError(
                f"{type(self).__name__} expects {self.settings_type.__name__}, "
                f"got {type(settings).__name__}"
            )

        api_key = resolve_api_key(settings)
        logger.info("%s: sending prompt (%d chars)...", self.provider_name, len(prompt))

        try:
            response = await self._post(prompt, settings, api_key)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.provider_name} request failed: {exc!r}") from exc

        if not response.is_success:
            raise ProviderError(
                f"{self.provider_name} API error: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{self.provider_name} returned a non-JSON body"
            ) from exc

        text = self._extract_completion(data)
        if text is None:
            raise MalformedResponseError(
                f"Failed to extract completion text from {self.provider_name} response"
            )

        logger.info("%s: received completion (%d chars).", self.provider_name, len(text))
        return text.strip()

    @abstractmethod
    async def _post(self, prompt: str, settings: Any, api_key: str) -> httpx.Response:
        """Send the provider-specific request envelope."""

    @abstractmethod
    def _extract_completion(self, data: Any) -> Optional[str]:
        """Return the first completion's text, or None if the path is absent."""


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------
class GeminiClient(LLMClient):
    """Google Gemini REST API; the key goes in the ``key`` query parameter."""

    provider_name = "gemini"
    settings_type = GeminiSettings

    async def _post(self, prompt: str, settings: GeminiSettings, api_key: str) -> httpx.Response:
        http = await self._get_http()
        payload = {
            "contents": [
                {"parts": [{"text": prompt}]}
            ],
        }
        return await http.post(
            settings.endpoint.rstrip("/"),
            params={"key": api_key},
            json=payload,
        )

    def _extract_completion(self, data: Any) -> Optional[str]:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (IndexError, KeyError, TypeError):
            return None
        return text if isinstance(text, str) else None


# ---------------------------------------------------------------------------
# OpenAI-compatible (Groq, OpenRouter, ...)
# ---------------------------------------------------------------------------
class OpenAICompatibleClient(LLMClient):
    """Chat-completions endpoints authenticated with a Bearer token."""

    provider_name = "openai_compatible"
    settings_type = OpenAICompatibleSettings

    async def _post(self, prompt: str, settings: OpenAICompatibleSettings, api_key: str) -> httpx.Response:
        http = await self._get_http()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": settings.model,
            "messages": [
                {"role": "user", "content": prompt},
            ],
        }
        return await http.post(
            f"{settings.endpoint.rstrip('/')}/chat/completions",
            json=payload,
            headers=headers,
        )

    def _extract_completion(self, data: Any) -> Optional[str]:
        try:
            text = data["choices"][0]["message"]["content"]
        except (IndexError, KeyError, TypeError):
            return None
        return text if isinstance(text, str) else None
