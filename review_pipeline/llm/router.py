"""
LLM Router
==========
Maps a provider settings variant to the client that speaks its protocol.

Adding a provider:
    1. add a settings variant (core/config.py) with a unique ``provider``
    2. add an LLMClient subclass (llm/client.py)
    3. register it here
Call sites keep using get_llm_client(settings.llm).send_prompt(...).
"""
import logging
from typing import Dict, Type

from review_pipeline.core.config import LLMSettings
from review_pipeline.core.errors import ConfigurationError
from review_pipeline.llm.client import GeminiClient, LLMClient, OpenAICompatibleClient

logger = logging.getLogger(__name__)

_PROVIDERS: Dict[str, Type[LLMClient]] = {
    "gemini": GeminiClient,
    "openai_compatible": OpenAICompatibleClient,
}


def register_provider(provider: str, client_cls: Type[LLMClient]) -> None:
    _PROVIDERS[provider] = client_cls


def get_llm_client(settings: LLMSettings) -> LLMClient:
    """
    Build the client for a settings variant.

    Raises
    ------
    ConfigurationError
        If no client is registered for the settings' provider.
    """
    provider = getattr(settings, "provider", "")
    client_cls = _PROVIDERS.get(provider)
    if client_cls is None:
        raise ConfigurationError(f"No LLM client registered for provider '{provider}'")
    logger.debug("Selected LLM provider: %s", provider)
    return client_cls()
