"""Competition orchestration: fan out a conversation, judge candidates, rank them."""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass

from llm_arena.conversation import Conversation
from llm_arena.errors import AllProvidersFailedError, ConfigurationError
from llm_arena.judges.base import Judge
from llm_arena.models import (
    Candidate,
    CandidateTrace,
    CompetitionResult,
    LeaderboardEntry,
    RubricSpec,
    Score,
)
from llm_arena.providers.base import AIProvider
from llm_arena.traces import NullTraceEmitter, TraceEvent, TraceSink

logger = logging.getLogger(__name__)

SUPPORTED_MODES = ("round-robin", "cascade")


@dataclass(frozen=True)
class ProviderSlot:
    provider: AIProvider
    model: str

    @property
    def id(self) -> str:
        return f"{self.provider.name()}:{self.model}"


@dataclass
class CompetitionSpec:
    providers: list[ProviderSlot]
    judges: list[Judge]
    rubric: RubricSpec
    mode: str = "round-robin"
    system: str | None = None
    # cascade only: stop at the first candidate scoring at least this much
    cascade_threshold: float = 0.8


async def _invoke_slot(
    slot: ProviderSlot,
    conversation: Conversation,
    system: str | None,
    tracer: TraceSink,
    session_id: str,
) -> Candidate | None:
    """Call a single provider/model pair.

    Never raises for provider failures: they are logged and None is returned.
    """
    try:
        result = await slot.provider.chat(conversation, target_model=slot.model, system=system)
    except Exception as exc:
        logger.warning("Provider %s failed: %s", slot.id, exc)
        tracer.emit(TraceEvent.create(
            session_id, "provider.error", {"candidate": slot.id, "error": str(exc)}, level="error"
        ))
        return None

    candidate = Candidate.from_output(
        slot.provider.name(), slot.model, result.output_text or "", result.usage
    )
    tracer.emit(TraceEvent.create(
        session_id,
        "provider.invoke",
        {"candidate": candidate.id, "chars": len(candidate.text)},
        level="debug",
    ))
    return candidate


async def _judge_candidate(
    candidate: Candidate,
    judges: list[Judge],
    rubric: RubricSpec,
    tracer: TraceSink,
    session_id: str,
) -> CandidateTrace:
    """Score one candidate with every judge; failing judges are left out."""
    results = await asyncio.gather(
        *(judge.score(candidate, rubric) for judge in judges),
        return_exceptions=True,
    )
    scores: dict[str, Score] = {}
    for judge, result in zip(judges, results):
        if isinstance(result, Exception):
            logger.warning("Judge %s failed on %s: %s", judge.name, candidate.id, result)
            continue
        if isinstance(result, BaseException):
            raise result
        scores[judge.name] = result
        tracer.emit(TraceEvent.create(
            session_id,
            "judge.score",
            {"candidate": candidate.id, "judge": judge.name, "total": result.total},
            level="debug",
        ))
    return CandidateTrace(candidate=candidate, scores=scores)


def aggregate_score(scores: dict[str, Score], rubric: RubricSpec, judge_count: int) -> float:
    """Weighted mean of judge totals.

    Judges missing from ``rubric.judge_weights`` get ``1 / judge_count``.
    A candidate with no scores aggregates to 0.
    """
    judge_weights = rubric.judge_weights or {}
    default_weight = 1.0 / judge_count if judge_count else 0.0

    total_score = 0.0
    total_weight = 0.0
    for judge_name, score in scores.items():
        weight = judge_weights.get(judge_name, default_weight)
        total_score += score.total * weight
        total_weight += weight

    return total_score / total_weight if total_weight > 0 else 0.0


def rank(traces: list[CandidateTrace], rubric: RubricSpec, judge_count: int) -> list[LeaderboardEntry]:
    """Sort by aggregate score, descending. Equal scores keep fan-out order."""
    entries = [
        LeaderboardEntry(candidate=t.candidate, score=aggregate_score(t.scores, rubric, judge_count))
        for t in traces
    ]
    return sorted(entries, key=lambda entry: entry.score, reverse=True)


async def _round_robin(
    conversation: Conversation,
    spec: CompetitionSpec,
    tracer: TraceSink,
    session_id: str,
) -> tuple[list[CandidateTrace], list[LeaderboardEntry]]:
    results = await asyncio.gather(*(
        _invoke_slot(slot, conversation, spec.system, tracer, session_id)
        for slot in spec.providers
    ))
    candidates = [c for c in results if c is not None]

    if not candidates:
        raise AllProvidersFailedError(len(spec.providers))

    logger.info("%d/%d providers produced a candidate", len(candidates), len(spec.providers))

    traces = list(await asyncio.gather(*(
        _judge_candidate(c, spec.judges, spec.rubric, tracer, session_id) for c in candidates
    )))
    return traces, rank(traces, spec.rubric, len(spec.judges))


async def _cascade(
    conversation: Conversation,
    spec: CompetitionSpec,
    tracer: TraceSink,
    session_id: str,
) -> tuple[list[CandidateTrace], list[LeaderboardEntry]]:
    """Try slots in listed order, stopping at the first good-enough candidate."""
    traces: list[CandidateTrace] = []
    for slot in spec.providers:
        candidate = await _invoke_slot(slot, conversation, spec.system, tracer, session_id)
        if candidate is None:
            continue
        trace = await _judge_candidate(candidate, spec.judges, spec.rubric, tracer, session_id)
        traces.append(trace)
        score = aggregate_score(trace.scores, spec.rubric, len(spec.judges))
        if score >= spec.cascade_threshold:
            logger.info("Cascade stopped at %s (%.3f >= %.3f)", candidate.id, score, spec.cascade_threshold)
            break
        logger.info("Cascade escalating past %s (%.3f < %.3f)", candidate.id, score, spec.cascade_threshold)

    if not traces:
        raise AllProvidersFailedError(len(spec.providers))

    return traces, rank(traces, spec.rubric, len(spec.judges))


def _reject_duplicates(what: str, keys: list[str]) -> None:
    """Candidate traces and judge scores are keyed by these, so they must be unique."""
    duplicates = sorted(key for key, count in Counter(keys).items() if count > 1)
    if duplicates:
        raise ConfigurationError(f"Duplicate {what}: {', '.join(duplicates)}")


async def compete(
    conversation: Conversation,
    spec: CompetitionSpec,
    tracer: TraceSink | None = None,
) -> CompetitionResult:
    """Run a competition and return the ranked result.

    Raises:
        ConfigurationError: Unsupported mode, no providers, a repeated
            provider/model pair or a repeated judge name, before any call.
        AllProvidersFailedError: Every provider call failed.
    """
    if spec.mode not in SUPPORTED_MODES:
        raise ConfigurationError(f"Unsupported competition mode: {spec.mode}")
    if not spec.providers:
        raise ConfigurationError("Competition requires at least one provider")
    _reject_duplicates("provider/model", [slot.id for slot in spec.providers])
    _reject_duplicates("judge name", [judge.name for judge in spec.judges])

    tracer = tracer or NullTraceEmitter()
    session_id = conversation.session_id

    tracer.emit(TraceEvent.create(session_id, "competition.start", {
        "mode": spec.mode,
        "providers": [slot.id for slot in spec.providers],
        "judges": [judge.name for judge in spec.judges],
    }))

    if spec.mode == "cascade":
        traces, leaderboard = await _cascade(conversation, spec, tracer, session_id)
    else:
        traces, leaderboard = await _round_robin(conversation, spec, tracer, session_id)

    winner = leaderboard[0]
    logger.info("Competition winner: %s (%.3f)", winner.id, winner.score)
    tracer.emit(TraceEvent.create(session_id, "competition.end", {
        "mode": spec.mode,
        "winner": winner.id,
        "score": winner.score,
    }))

    return CompetitionResult(winner=winner, leaderboard=leaderboard, traces=traces, mode=spec.mode)
