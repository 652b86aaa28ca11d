"""Structured lifecycle events for competitions and debates."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Protocol, get_args

logger = logging.getLogger(__name__)

EventType = Literal[
    "competition.start",
    "competition.end",
    "provider.invoke",
    "provider.error",
    "judge.score",
    "debate.turn",
    "debug.info",
]
TraceLevel = Literal["debug", "info", "warning", "error"]

EVENT_TYPES: frozenset[str] = frozenset(get_args(EventType))

_LEVEL_PRIORITY: dict[str, int] = {"debug": 0, "info": 1, "warning": 2, "error": 3}
_LOGGING_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class TraceEvent:
    timestamp: datetime
    session_id: str
    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    level: TraceLevel | None = None

    def __post_init__(self) -> None:
        if self.event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown trace event type: {self.event_type!r}")
        if self.level is not None and self.level not in _LEVEL_PRIORITY:
            raise ValueError(f"Unknown trace level: {self.level!r}")

    @classmethod
    def create(
        cls,
        session_id: str,
        event_type: EventType,
        data: dict[str, Any] | None = None,
        level: TraceLevel | None = None,
    ) -> "TraceEvent":
        return cls(
            timestamp=datetime.now(timezone.utc),
            session_id=session_id,
            event_type=event_type,
            data=dict(data or {}),
            level=level,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "sessionId": self.session_id,
            "eventType": self.event_type,
            "level": self.level or "info",
            "data": self.data,
        }


class TraceSink(Protocol):
    def emit(self, event: TraceEvent) -> None: ...


class NullTraceEmitter:
    """Sink that drops everything. Used when no emitter is configured."""

    def emit(self, event: TraceEvent) -> None:
        return None


class TraceEmitter:
    """Writes events at or above ``min_level`` to the ``llm_arena.traces`` logger.

    ``fmt`` is ``"json"`` (one JSON object per line) or ``"pretty"``.
    """

    def __init__(self, min_level: TraceLevel = "debug", fmt: Literal["json", "pretty"] = "json") -> None:
        if min_level not in _LEVEL_PRIORITY:
            raise ValueError(f"Unknown trace level: {min_level!r}")
        if fmt not in ("json", "pretty"):
            raise ValueError(f"Unknown trace format: {fmt!r}")
        self.min_level = min_level
        self.fmt = fmt

    def accepts(self, event: TraceEvent) -> bool:
        return _LEVEL_PRIORITY[event.level or "info"] >= _LEVEL_PRIORITY[self.min_level]

    def format(self, event: TraceEvent) -> str:
        payload = event.to_dict()
        if self.fmt == "json":
            return json.dumps(payload, default=str, ensure_ascii=False)
        data = " ".join(f"{k}={v}" for k, v in event.data.items())
        return f"{payload['timestamp']} [{payload['level']}] {event.event_type} session={event.session_id} {data}".rstrip()

    def emit(self, event: TraceEvent) -> None:
        if not self.accepts(event):
            return
        try:
            line = self.format(event)
        except Exception as exc:  # emission must never break the caller
            logger.debug("Dropped unserializable trace event %s: %s", event.event_type, exc)
            return
        logger.log(_LOGGING_LEVELS[event.level or "info"], line)
