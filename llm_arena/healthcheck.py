"""Provider health checks: ping each API before starting a competition or debate."""

import asyncio
import logging

from llm_arena.conversation import append_message, new_conversation
from llm_arena.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0
_PING_MAX_TOKENS = 16


async def _check_one(name: str, provider: AIProvider) -> tuple[str, bool, str]:
    """Ping a single provider on its first model. Returns (name, ok, error_message)."""
    try:
        models = await provider.list_models()
        if not models:
            return name, False, "No models configured"
        conversation = append_message(new_conversation(f"health-{name}"), "user", _PING_PROMPT)
        await asyncio.wait_for(
            provider.chat(conversation, target_model=models[0], max_tokens=_PING_MAX_TOKENS),
            timeout=_TIMEOUT_SEC,
        )
        return name, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", name, exc)
        return name, False, str(exc) or type(exc).__name__


async def run_health_checks(
    providers: dict[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, p) for n, p in providers.items()))
    return {name: (ok, err) for name, ok, err in results}
