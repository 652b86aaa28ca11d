"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import time

import anthropic as anthropic_sdk

from config.config_loader import ProviderConfig
from llm_arena.conversation import Conversation, append_message
from llm_arena.models import TokenUsage
from llm_arena.providers.base import AIProvider, ChatResult, ProviderError

logger = logging.getLogger(__name__)


def to_anthropic_request(
    conversation: Conversation,
    system: str | None = None,
) -> tuple[str | None, list[dict[str, str]]]:
    """Split a conversation into Anthropic's (system, messages) pair.

    System messages are lifted into the system parameter; an explicit
    ``system`` argument replaces them.
    """
    system_messages = "\n".join(m.content for m in conversation.messages if m.role == "system")
    messages = [
        {"role": "user" if m.role == "user" else "assistant", "content": m.content}
        for m in conversation.messages
        if m.role != "system"
    ]
    return system or system_messages or None, messages


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        api_key = config.api_key
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

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
        system_prompt, messages = to_anthropic_request(conversation, system)
        request: dict = {
            "model": target_model,
            "max_tokens": max_tokens or self._config.max_tokens,
            "temperature": temperature if temperature is not None else self._config.temperature,
            "messages": messages,
        }
        if system_prompt:
            request["system"] = system_prompt

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**request),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.content:
            raise ProviderError(self._config.name, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        content = "".join(text_blocks)

        usage: TokenUsage | None = None
        if response.usage:
            usage = TokenUsage(
                prompt=response.usage.input_tokens,
                completion=response.usage.output_tokens,
            )

        logger.info(
            "Anthropic %s: %.2fs, %s tokens",
            target_model,
            latency,
            usage.total if usage else None,
        )

        return ChatResult(
            conversation=append_message(conversation, "assistant", content),
            output_text=content,
            usage=usage,
        )
