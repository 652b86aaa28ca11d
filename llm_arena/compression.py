"""Collapse old conversation history into a single summary message."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence

from llm_arena.conversation import Conversation, Message

logger = logging.getLogger(__name__)

SUMMARY_LABEL = "[Conversation summary]"

Summarizer = Callable[[Sequence[Message]], str | Awaitable[str]]


async def compress_conversation(
    conversation: Conversation,
    preserve_recent: int,
    summarize: Summarizer | None = None,
) -> Conversation:
    """Keep the last ``preserve_recent`` messages and summarize the rest.

    Conversations at or under the window are returned as-is (same object).
    Otherwise the result holds one synthetic ``system`` message followed by
    the preserved messages in their original order. ``summarize`` may be a
    plain or async callable; without one a count-based placeholder is used.
    """
    if preserve_recent < 0:
        raise ValueError(f"preserve_recent must be >= 0, got {preserve_recent}")

    messages = conversation.messages
    if len(messages) <= preserve_recent:
        return conversation

    cut = len(messages) - preserve_recent
    old_messages, recent_messages = messages[:cut], messages[cut:]

    if summarize is None:
        summary = f"[Conversation summary: {len(old_messages)} messages]"
    else:
        summary = summarize(old_messages)
        if inspect.isawaitable(summary):
            summary = await summary

    logger.debug(
        "Compressed %d messages into a summary, kept %d recent",
        len(old_messages),
        len(recent_messages),
    )

    summary_message = Message(role="system", content=f"{SUMMARY_LABEL}: {summary}")
    return conversation.model_copy(update={"messages": (summary_message, *recent_messages)})
