"""Provider clients and the registry that hands them to the arena."""

from llm_arena.providers.base import AIProvider, ChatResult, ProviderError
from llm_arena.providers.registry import ProviderRegistry, build_registry

__all__ = ["AIProvider", "ChatResult", "ProviderError", "ProviderRegistry", "build_registry"]
