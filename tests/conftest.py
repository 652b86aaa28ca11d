"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ProviderConfig
from llm_arena.conversation import Conversation, append_message, new_conversation
from llm_arena.models import RubricSpec, TokenUsage
from llm_arena.providers.base import AIProvider, ChatResult, ProviderError
from llm_arena.providers.registry import ProviderRegistry


@pytest.fixture
def sample_provider_config() -> ProviderConfig:
    return ProviderConfig(
        name="test_provider",
        sdk="openai",
        models=["test-model-1", "test-model-2"],
        timeout_sec=30,
        max_tokens=1024,
        api_key_env="TEST_API_KEY",
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        output_dir=tmp_path / "output",
        debate_rounds=1,
        judges=["heuristic"],
        rubric_weights={"length": 1.0, "structure": 1.0},
    )


@pytest.fixture
def sample_app_config(sample_defaults_config: DefaultsConfig) -> AppConfig:
    provider_cfg = ProviderConfig(
        name="openai",
        sdk="openai",
        models=["gpt-4o-mini"],
        timeout_sec=60,
        max_tokens=4096,
        api_key_env="OPENAI_API_KEY",
    )
    return AppConfig(
        defaults=sample_defaults_config,
        providers={"openai": provider_cfg},
        available_providers={"openai"},
    )


@pytest.fixture
def sample_conversation() -> Conversation:
    return append_message(new_conversation("session-test"), "user", "Explain Python decorators.")


@pytest.fixture
def sample_rubric() -> RubricSpec:
    return RubricSpec(weights={"length": 1.0, "structure": 1.0})


class MockProvider(AIProvider):
    """Test double AIProvider.

    ``chat`` is an AsyncMock so tests can inspect calls or swap in a
    side_effect; by default it replies with ``response_content``.
    """

    def __init__(
        self,
        provider_name: str = "mock",
        response_content: str = "Mock response",
        models: list[str] | None = None,
    ) -> None:
        self._name = provider_name
        self._response_content = response_content
        self._models = models if models is not None else ["mock-model"]
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because chat is defined in the class body below.
        self.chat = AsyncMock(side_effect=self._reply)  # type: ignore[method-assign]

    def name(self) -> str:
        return self._name

    async def list_models(self) -> list[str]:
        return list(self._models)

    def queue(self, *replies: str | Exception) -> None:
        """Answer successive chat calls with ``replies``; exceptions are raised."""
        pending = list(replies)

        async def _next(conversation, target_model, **kwargs):
            reply = pending.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return _result(conversation, reply)

        self.chat.side_effect = _next

    def fail(self, message: str = "503 Service Unavailable") -> None:
        self.chat.side_effect = ProviderError(self._name, message)

    async def _reply(self, conversation, target_model, **kwargs) -> ChatResult:
        return _result(conversation, self._response_content)

    async def chat(  # type: ignore[override]
        self,
        conversation: Conversation,
        target_model: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatResult:
        """Default implementation; replaced by AsyncMock in __init__."""
        return _result(conversation, self._response_content)


def _result(conversation: Conversation, text: str) -> ChatResult:
    return ChatResult(
        conversation=append_message(conversation, "assistant", text),
        output_text=text,
        usage=TokenUsage(prompt=10, completion=5),
    )


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def two_mock_providers() -> list[MockProvider]:
    return [MockProvider("provider_a", "Response from A"), MockProvider("provider_b", "Response from B")]


@pytest.fixture
def mock_registry(two_mock_providers: list[MockProvider]) -> ProviderRegistry:
    return ProviderRegistry({p.name(): p for p in two_mock_providers})
