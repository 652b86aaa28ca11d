"""OpenAI provider using openai SDK with native async."""

import asyncio
import logging
import time

from openai import AsyncOpenAI

from config.config_loader import ProviderConfig
from llm_arena.conversation import Conversation, append_message
from llm_arena.models import TokenUsage
from llm_arena.providers.base import AIProvider, ChatResult, ProviderError

logger = logging.getLogger(__name__)


def to_openai_messages(conversation: Conversation, system: str | None = None) -> list[dict[str, str]]:
    """Convert conversation messages to chat-completions format."""
    messages = [
        {"role": "assistant" if msg.role == "tool" else msg.role, "content": msg.content}
        for msg in conversation.messages
    ]
    if system:
        messages.insert(0, {"role": "system", "content": system})
    return messages


class OpenAIProvider(AIProvider):
    """OpenAI provider via openai SDK."""

    label = "OpenAI"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = self._build_client(config)

    def _build_client(self, config: ProviderConfig) -> AsyncOpenAI:
        api_key = config.api_key
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        return AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    async def list_models(self) -> list[str]:
        return list(self._config.models)

    async def chat(
        self,
        conversation: Conversation,
        target_model: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatResult:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=target_model,
                    messages=to_openai_messages(conversation, system),
                    temperature=temperature if temperature is not None else self._config.temperature,
                    max_tokens=max_tokens or self._config.max_tokens,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        usage: TokenUsage | None = None
        if response.usage:
            usage = TokenUsage(
                prompt=response.usage.prompt_tokens,
                completion=response.usage.completion_tokens,
            )

        logger.info(
            "%s %s: %.2fs, %s tokens",
            self.label,
            target_model,
            latency,
            usage.total if usage else None,
        )

        content = choice.message.content
        return ChatResult(
            conversation=append_message(conversation, "assistant", content),
            output_text=content,
            usage=usage,
        )
