"""Abstract base for all text-generation providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from llm_arena.conversation import Conversation
from llm_arena.models import TokenUsage


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


@dataclass
class ChatResult:
    conversation: Conversation     # input conversation with the assistant reply appended
    output_text: str | None = None
    usage: TokenUsage | None = None


class AIProvider(ABC):
    """Abstract base for all providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openai', 'anthropic')."""
        ...

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Return the model identifiers this provider can target."""
        ...

    @abstractmethod
    async def chat(
        self,
        conversation: Conversation,
        target_model: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatResult:
        """Send the conversation to ``target_model`` and return the reply.

        Args:
            conversation: The conversation so far; not modified.
            target_model: Provider-specific model identifier.
            system: Optional system prompt for this call only.
            temperature: Overrides the configured default temperature.
            max_tokens: Overrides the configured output token limit.

        Returns:
            ChatResult with the updated conversation, reply text and usage.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...
