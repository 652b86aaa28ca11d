"""Local OpenAI-compatible endpoint (LiteLLM, Ollama) via openai SDK."""

from openai import AsyncOpenAI

from config.config_loader import ProviderConfig
from llm_arena.providers.openai_provider import OpenAIProvider

DEFAULT_BASE_URL = "http://127.0.0.1:4000/v1"

# Local proxies ignore the key but the SDK refuses to start without one
_PLACEHOLDER_KEY = "not-needed"


class LocalProvider(OpenAIProvider):
    """Self-hosted model server speaking the chat-completions API."""

    label = "Local"

    def _build_client(self, config: ProviderConfig) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=config.api_key or _PLACEHOLDER_KEY,
            base_url=config.base_url or DEFAULT_BASE_URL,
        )
