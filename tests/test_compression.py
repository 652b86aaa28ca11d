"""Tests for llm_arena/compression.py."""

import pytest

from llm_arena.compression import SUMMARY_LABEL, compress_conversation
from llm_arena.conversation import append_message, new_conversation


def _conversation(n: int):
    conv = new_conversation("s1")
    for i in range(n):
        conv = append_message(conv, "user" if i % 2 == 0 else "assistant", f"message {i}")
    return conv


async def test_short_conversation_returned_unchanged():
    conv = _conversation(3)
    assert await compress_conversation(conv, preserve_recent=3) is conv
    assert await compress_conversation(conv, preserve_recent=10) is conv


async def test_long_conversation_keeps_recent_messages():
    conv = _conversation(10)
    compressed = await compress_conversation(conv, preserve_recent=5)

    assert len(compressed.messages) == 6
    summary = compressed.messages[0]
    assert summary.role == "system"
    assert summary.content.startswith(SUMMARY_LABEL)
    assert "5 messages" in summary.content
    assert [m.content for m in compressed.messages[1:]] == [f"message {i}" for i in range(5, 10)]
    assert compressed.session_id == "s1"


async def test_input_is_not_modified():
    conv = _conversation(6)
    await compress_conversation(conv, preserve_recent=2)
    assert len(conv.messages) == 6


async def test_preserve_zero_summarizes_everything():
    compressed = await compress_conversation(_conversation(4), preserve_recent=0)
    assert len(compressed.messages) == 1
    assert compressed.messages[0].role == "system"


async def test_negative_window_rejected():
    with pytest.raises(ValueError):
        await compress_conversation(_conversation(2), preserve_recent=-1)


async def test_sync_summarizer_receives_old_messages():
    seen = []

    def summarize(messages):
        seen.extend(m.content for m in messages)
        return "they talked"

    compressed = await compress_conversation(_conversation(4), preserve_recent=1, summarize=summarize)
    assert seen == ["message 0", "message 1", "message 2"]
    assert compressed.messages[0].content == f"{SUMMARY_LABEL}: they talked"


async def test_async_summarizer_is_awaited():
    async def summarize(messages):
        return f"{len(messages)} earlier turns"

    compressed = await compress_conversation(_conversation(5), preserve_recent=2, summarize=summarize)
    assert compressed.messages[0].content == f"{SUMMARY_LABEL}: 3 earlier turns"
