"""xAI Grok provider using openai SDK (OpenAI-compatible API)."""

from openai import AsyncOpenAI

from config.config_loader import ProviderConfig
from llm_arena.providers.base import ProviderError
from llm_arena.providers.openai_provider import OpenAIProvider


class XAIProvider(OpenAIProvider):
    """xAI Grok provider via OpenAI-compatible API."""

    label = "xAI"

    def _build_client(self, config: ProviderConfig) -> AsyncOpenAI:
        api_key = config.api_key
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if not config.base_url:
            raise ProviderError(config.name, "base_url is required for xAI provider")
        return AsyncOpenAI(api_key=api_key, base_url=config.base_url)
