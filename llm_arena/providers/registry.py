"""Explicit provider registry built once at startup and passed to callers."""

import logging

from config.config_loader import AppConfig
from llm_arena.errors import ConfigurationError
from llm_arena.providers.anthropic import AnthropicProvider
from llm_arena.providers.base import AIProvider
from llm_arena.providers.gemini import GeminiProvider
from llm_arena.providers.local import LocalProvider
from llm_arena.providers.openai_provider import OpenAIProvider
from llm_arena.providers.xai import XAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "xai": XAIProvider,
    "local": LocalProvider,
}


def split_target(target: str) -> tuple[str, str | None]:
    """Split ``"provider/model"`` into its parts; the model may be absent."""
    provider_name, sep, model = target.partition("/")
    return provider_name, (model if sep and model else None)


class ProviderRegistry:
    """Name -> provider lookup. Accepts ``provider`` or ``provider/model`` targets."""

    def __init__(self, providers: dict[str, AIProvider] | None = None) -> None:
        self._providers: dict[str, AIProvider] = dict(providers or {})

    def register(self, name: str, provider: AIProvider) -> None:
        self._providers[name] = provider

    def get(self, target: str) -> AIProvider:
        provider_name, _ = split_target(target)
        provider = self._providers.get(provider_name)
        if provider is None:
            raise ConfigurationError(f"Unknown provider: {target}")
        return provider

    def resolve(self, target: str) -> tuple[AIProvider, str]:
        """Return (provider, model) for a ``provider/model`` target."""
        provider = self.get(target)
        _, model = split_target(target)
        if model is None:
            raise ConfigurationError(f"Target {target!r} has no model, expected 'provider/model'")
        return provider, model

    def names(self) -> list[str]:
        return list(self._providers)

    def providers(self) -> list[AIProvider]:
        return list(self._providers.values())

    def items(self) -> list[tuple[str, AIProvider]]:
        return list(self._providers.items())

    def __contains__(self, name: str) -> bool:
        return split_target(name)[0] in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_registry(config: AppConfig) -> ProviderRegistry:
    """Instantiate every available provider. Failures are logged and skipped."""
    registry = ProviderRegistry()
    for name in sorted(config.available_providers):
        provider_cfg = config.providers[name]
        provider_cls = PROVIDER_CLASSES.get(provider_cfg.sdk)
        if provider_cls is None:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, provider_cfg.sdk)
            continue
        try:
            registry.register(name, provider_cls(provider_cfg))
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return registry
