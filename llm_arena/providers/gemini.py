"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ProviderConfig
from llm_arena.conversation import Conversation, append_message
from llm_arena.models import TokenUsage
from llm_arena.providers.base import AIProvider, ChatResult, ProviderError

logger = logging.getLogger(__name__)


def to_gemini_contents(conversation: Conversation) -> list[genai_types.Content]:
    """Map conversation messages to Gemini chat contents ('model' or 'user')."""
    return [
        genai_types.Content(
            role="model" if msg.role == "assistant" else "user",
            parts=[genai_types.Part(text=msg.content)],
        )
        for msg in conversation.messages
    ]


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        api_key = config.api_key
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

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
                self._client.aio.models.generate_content(
                    model=target_model,
                    contents=to_gemini_contents(conversation),
                    config=genai_types.GenerateContentConfig(
                        system_instruction=system,
                        temperature=temperature if temperature is not None else self._config.temperature,
                        max_output_tokens=max_tokens or self._config.max_tokens,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        usage: TokenUsage | None = None
        if response.usage_metadata:
            usage = TokenUsage(
                prompt=response.usage_metadata.prompt_token_count or 0,
                completion=response.usage_metadata.candidates_token_count or 0,
            )

        logger.info(
            "Gemini %s: %.2fs, %s tokens",
            target_model,
            latency,
            usage.total if usage else None,
        )

        return ChatResult(
            conversation=append_message(conversation, "assistant", response.text),
            output_text=response.text,
            usage=usage,
        )
