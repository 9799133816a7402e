from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from study_companion.config import Settings
    from study_companion.providers.base import LLMProvider

log = logging.getLogger("study_companion.llm")


def create_provider(provider_id: str, settings: Settings) -> LLMProvider:
    if provider_id == "gemini":
        from study_companion.providers.llm_gemini import GeminiProvider
        return GeminiProvider(model=settings.gemini_model)
    elif provider_id in ("cosmosrp-2.5", "cosmosrp-2.1", "gpt-oss-20b"):
        from study_companion.providers.llm_pawan import PawanProvider
        return PawanProvider(model=provider_id)
    elif provider_id == "openai":
        from study_companion.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=settings.openai_model)
    elif provider_id == "anthropic":
        from study_companion.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=settings.anthropic_model)
    elif provider_id == "ollama":
        from study_companion.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=settings.ollama_url, model=settings.ollama_model)
    raise ValueError(f"Unknown LLM provider: {provider_id}")


def create_providers(provider_ids: list[str], settings: Settings) -> dict[str, LLMProvider]:
    """Instantiate what can be instantiated; the rest stays out of the map
    and shows up as a failed attempt when the chain reaches it."""
    providers: dict[str, LLMProvider] = {}
    for pid in provider_ids:
        try:
            providers[pid] = create_provider(pid, settings)
        except Exception as e:
            log.info("Provider %s unavailable: %s", pid, e)
    return providers
