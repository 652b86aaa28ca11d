"""Canonical conversation document (CNF) shared by providers, judges and the arena.

Conversations are frozen pydantic models. Every helper here returns a new
value; the input is never modified, so snapshots can be shared freely
between concurrent provider calls.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Role = Literal["user", "assistant", "system", "tool"]

ROLES: frozenset[str] = frozenset(get_args(Role))

REDACTION_MARKER = "[REDACTED]"

_SECRET_PATTERNS = [
    re.compile(r"sk-[a-zA-Z0-9\-_]+"),        # OpenAI
    re.compile(r"sk-ant-[a-zA-Z0-9\-_]+"),    # Anthropic
    re.compile(r"AIza[a-zA-Z0-9_\-]{35}"),    # Google
    re.compile(r"xai-[a-zA-Z0-9]{32,}"),      # xAI
]


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["file", "image", "audio", "video", "url"]
    uri: str
    title: str | None = None
    meta: dict[str, Any] | None = None


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: Literal["doc", "code", "image", "audio", "video", "archive", "other"]
    uri: str
    title: str | None = None
    meta: dict[str, Any] | None = None


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    id: str | None = None
    name: str | None = None
    timestamp: str | None = None
    attachments: tuple[Attachment, ...] | None = None
    citations: tuple[str, ...] | None = None
    meta: dict[str, Any] | None = None


class Conversation(BaseModel):
    """Ordered dialogue plus session-scoped metadata.

    ``session_id`` is read and written only as ``sessionId`` and is fixed at
    creation. Build conversations in code with ``new_conversation``.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(alias="sessionId")
    messages: tuple[Message, ...] = ()
    artifacts: tuple[Artifact, ...] | None = None
    scratch: dict[str, Any] | None = None
    tags: tuple[str, ...] | None = None
    locale: str | None = None
    timezone: str | None = None


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    data: Conversation | None = None


def new_conversation(session_id: str | None = None, **extra: Any) -> Conversation:
    """Create an empty conversation, generating a session id when none is given."""
    return Conversation(sessionId=session_id or f"session-{uuid.uuid4().hex[:12]}", **extra)


def append_message(
    conversation: Conversation,
    role: str,
    content: str,
    meta: dict[str, Any] | None = None,
) -> Conversation:
    """Return a copy of ``conversation`` with a timestamped message appended."""
    if role not in ROLES:
        raise ValueError(f"Unknown message role: {role!r}")
    message = Message(
        role=role,  # type: ignore[arg-type]
        content=content,
        timestamp=datetime.now(timezone.utc).isoformat(),
        meta=dict(meta) if meta else None,
    )
    return conversation.model_copy(update={"messages": conversation.messages + (message,)})


def extract_last_message(conversation: Conversation) -> str:
    if not conversation.messages:
        return ""
    return conversation.messages[-1].content


def _redact_text(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTION_MARKER, text)
    return text


def redact_secrets(conversation: Conversation) -> Conversation:
    """Replace provider API-key shaped tokens in every message with a marker."""
    messages = tuple(
        msg.model_copy(update={"content": _redact_text(msg.content)})
        for msg in conversation.messages
    )
    return conversation.model_copy(update={"messages": messages})


def _format_error(error: dict[str, Any]) -> str:
    path = ".".join(str(part) for part in error["loc"])
    return f"{path}: {error['msg']}" if path else error["msg"]


def validate_conversation(raw: Any) -> ValidationResult:
    """Validate an untrusted payload against the conversation schema.

    Never raises: problems come back as one readable string per violated
    field, e.g. ``messages.0.role: Input should be 'user', ...``.
    """
    try:
        conversation = Conversation.model_validate(raw)
    except ValidationError as exc:
        return ValidationResult(valid=False, errors=[_format_error(e) for e in exc.errors()])
    return ValidationResult(valid=True, data=conversation)
