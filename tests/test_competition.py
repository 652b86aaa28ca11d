"""Tests for llm_arena/competition.py -- providers and judges are mocked."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from llm_arena.competition import (
    CompetitionSpec,
    ProviderSlot,
    aggregate_score,
    compete,
    rank,
)
from llm_arena.errors import AllProvidersFailedError, ConfigurationError
from llm_arena.judges.base import Judge
from llm_arena.judges.heuristic import HeuristicJudge
from llm_arena.models import Candidate, CandidateTrace, RubricSpec, Score
from tests.conftest import MockProvider


class FixedJudge(Judge):
    """Returns a preset total per candidate id (0.0 for unknown ids)."""

    def __init__(self, name: str, totals: dict[str, float]) -> None:
        self.name = name
        self._totals = totals

    async def score(self, candidate: Candidate, rubric: RubricSpec) -> Score:
        return Score(total=self._totals.get(candidate.id, 0.0))


class RecordingTracer:
    def __init__(self) -> None:
        self.events = []

    def emit(self, event) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type for e in self.events]


def _slots(*providers: MockProvider) -> list[ProviderSlot]:
    return [ProviderSlot(p, "m") for p in providers]


@pytest.fixture
def rubric() -> RubricSpec:
    return RubricSpec(weights={"length": 1.0})


async def test_round_robin_ranks_by_score(sample_conversation, rubric):
    a, b, c = MockProvider("a"), MockProvider("b"), MockProvider("c")
    judge = FixedJudge("fixed", {"a:m": 0.2, "b:m": 0.9, "c:m": 0.5})

    result = await compete(sample_conversation, CompetitionSpec(_slots(a, b, c), [judge], rubric))

    assert [e.id for e in result.leaderboard] == ["b:m", "c:m", "a:m"]
    assert result.winner.id == "b:m"
    assert result.winner is result.leaderboard[0]
    assert result.mode == "round-robin"


async def test_leaderboard_is_permutation_of_candidates(sample_conversation, rubric):
    providers = [MockProvider(f"p{i}", "x" * (i * 40)) for i in range(1, 5)]
    result = await compete(
        sample_conversation, CompetitionSpec(_slots(*providers), [HeuristicJudge()], rubric)
    )
    scores = [e.score for e in result.leaderboard]
    assert scores == sorted(scores, reverse=True)
    assert sorted(e.id for e in result.leaderboard) == sorted(t.candidate.id for t in result.traces)
    assert len(result.leaderboard) == 4


async def test_equal_scores_keep_fan_out_order(sample_conversation, rubric):
    providers = [MockProvider(name, "same text") for name in ("first", "second", "third")]
    result = await compete(
        sample_conversation, CompetitionSpec(_slots(*providers), [HeuristicJudge()], rubric)
    )
    assert [e.id for e in result.leaderboard] == ["first:m", "second:m", "third:m"]


async def test_failed_provider_is_left_out(sample_conversation, rubric):
    good, bad = MockProvider("good", "fine answer"), MockProvider("bad")
    bad.fail()
    tracer = RecordingTracer()

    result = await compete(
        sample_conversation, CompetitionSpec(_slots(good, bad), [HeuristicJudge()], rubric), tracer
    )

    assert [e.id for e in result.leaderboard] == ["good:m"]
    assert [t.candidate.id for t in result.traces] == ["good:m"]
    errors = [e for e in tracer.events if e.event_type == "provider.error"]
    assert len(errors) == 1
    assert errors[0].data["candidate"] == "bad:m"
    assert errors[0].level == "error"


async def test_all_providers_failed(sample_conversation, rubric):
    a, b = MockProvider("a"), MockProvider("b")
    a.fail()
    b.chat.side_effect = RuntimeError("connection reset")

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await compete(sample_conversation, CompetitionSpec(_slots(a, b), [HeuristicJudge()], rubric))
    assert exc_info.value.attempted == 2


async def test_unsupported_mode_rejected_before_calls(sample_conversation, rubric):
    provider = MockProvider("a")
    spec = CompetitionSpec(_slots(provider), [HeuristicJudge()], rubric, mode="elimination")

    with pytest.raises(ConfigurationError, match="Unsupported competition mode: elimination"):
        await compete(sample_conversation, spec)
    provider.chat.assert_not_awaited()


async def test_no_providers_rejected(sample_conversation, rubric):
    with pytest.raises(ConfigurationError):
        await compete(sample_conversation, CompetitionSpec([], [HeuristicJudge()], rubric))


async def test_failing_judge_is_absorbed(sample_conversation, rubric):
    broken = MagicMock(spec=Judge)
    broken.name = "broken"
    broken.score = AsyncMock(side_effect=RuntimeError("judge down"))
    good = FixedJudge("fixed", {"a:m": 0.6})

    result = await compete(
        sample_conversation, CompetitionSpec(_slots(MockProvider("a")), [good, broken], rubric)
    )

    trace = result.trace_for("a:m")
    assert set(trace.scores) == {"fixed"}
    assert result.winner.score == pytest.approx(0.6)


async def test_judge_weights_shift_the_ranking(sample_conversation, rubric):
    a, b = MockProvider("a"), MockProvider("b")
    judges = [
        FixedJudge("strict", {"a:m": 1.0, "b:m": 0.0}),
        FixedJudge("lenient", {"a:m": 0.0, "b:m": 1.0}),
    ]
    weighted = RubricSpec(weights={"length": 1.0}, judge_weights={"strict": 0.2, "lenient": 0.8})

    result = await compete(sample_conversation, CompetitionSpec(_slots(a, b), judges, weighted))

    assert result.winner.id == "b:m"
    assert result.winner.score == pytest.approx(0.8)


async def test_system_prompt_forwarded(sample_conversation, rubric):
    provider = MockProvider("a")
    await compete(
        sample_conversation,
        CompetitionSpec(_slots(provider), [HeuristicJudge()], rubric, system="Be brief."),
    )
    _, kwargs = provider.chat.call_args
    assert kwargs["system"] == "Be brief."
    assert kwargs["target_model"] == "m"


async def test_trace_lifecycle(sample_conversation, rubric):
    tracer = RecordingTracer()
    await compete(
        sample_conversation,
        CompetitionSpec(_slots(MockProvider("a"), MockProvider("b")), [HeuristicJudge()], rubric),
        tracer,
    )
    types = tracer.types()
    assert types[0] == "competition.start"
    assert types[-1] == "competition.end"
    assert types.count("provider.invoke") == 2
    assert types.count("judge.score") == 2
    assert {e.session_id for e in tracer.events} == {sample_conversation.session_id}
    assert tracer.events[-1].data["winner"] == "a:m"


async def test_cascade_stops_at_threshold(sample_conversation, rubric):
    a, b, c = MockProvider("a"), MockProvider("b"), MockProvider("c")
    judge = FixedJudge("fixed", {"a:m": 0.3, "b:m": 0.85, "c:m": 1.0})
    spec = CompetitionSpec(_slots(a, b, c), [judge], rubric, mode="cascade", cascade_threshold=0.8)

    result = await compete(sample_conversation, spec)

    assert result.mode == "cascade"
    assert result.winner.id == "b:m"
    assert [e.id for e in result.leaderboard] == ["b:m", "a:m"]
    c.chat.assert_not_awaited()


async def test_cascade_tries_everyone_below_threshold(sample_conversation, rubric):
    a, b = MockProvider("a"), MockProvider("b")
    a.fail()
    judge = FixedJudge("fixed", {"b:m": 0.4})
    spec = CompetitionSpec(_slots(a, b), [judge], rubric, mode="cascade", cascade_threshold=0.9)

    result = await compete(sample_conversation, spec)

    assert [e.id for e in result.leaderboard] == ["b:m"]


async def test_cascade_all_failed(sample_conversation, rubric):
    a = MockProvider("a")
    a.fail()
    with pytest.raises(AllProvidersFailedError):
        await compete(
            sample_conversation,
            CompetitionSpec(_slots(a), [HeuristicJudge()], rubric, mode="cascade"),
        )


def test_aggregate_score_default_weights():
    scores = {"x": Score(total=0.4), "y": Score(total=0.8)}
    assert aggregate_score(scores, RubricSpec(weights={}), judge_count=2) == pytest.approx(0.6)


def test_aggregate_score_no_scores():
    assert aggregate_score({}, RubricSpec(weights={}), judge_count=2) == 0.0


def test_aggregate_score_missing_judge_uses_default_weight():
    scores = {"x": Score(total=1.0), "y": Score(total=0.0)}
    rubric = RubricSpec(weights={}, judge_weights={"x": 0.5})
    assert aggregate_score(scores, rubric, judge_count=2) == pytest.approx(0.5)


def test_rank_is_stable():
    traces = [
        CandidateTrace(Candidate.from_output(name, "m", ""), {"j": Score(total=0.5)})
        for name in ("one", "two", "three")
    ]
    entries = rank(traces, RubricSpec(weights={}), judge_count=1)
    assert [e.id for e in entries] == ["one:m", "two:m", "three:m"]


async def test_duplicate_judge_names_rejected_before_calls(sample_conversation, rubric):
    provider = MockProvider("a")
    judges = [FixedJudge("llm", {"a:m": 0.9}), FixedJudge("llm", {"a:m": 0.1})]

    with pytest.raises(ConfigurationError, match="Duplicate judge name: llm"):
        await compete(sample_conversation, CompetitionSpec(_slots(provider), judges, rubric))
    provider.chat.assert_not_awaited()


async def test_distinct_judge_names_keep_every_score(sample_conversation, rubric):
    judges = [FixedJudge("llm:x/1", {"a:m": 0.9}), FixedJudge("llm:y/2", {"a:m": 0.1})]

    result = await compete(sample_conversation, CompetitionSpec(_slots(MockProvider("a")), judges, rubric))

    assert len(result.trace_for("a:m").scores) == 2
    assert result.winner.score == pytest.approx(0.5)


async def test_duplicate_provider_model_rejected_before_calls(sample_conversation, rubric):
    provider = MockProvider("a")
    spec = CompetitionSpec([ProviderSlot(provider, "m"), ProviderSlot(provider, "m")], [HeuristicJudge()], rubric)

    with pytest.raises(ConfigurationError, match="Duplicate provider/model: a:m"):
        await compete(sample_conversation, spec)
    provider.chat.assert_not_awaited()


async def test_traces_match_leaderboard_entries(sample_conversation, rubric):
    short, long = MockProvider("short", "short"), MockProvider("long", "x" * 500)

    result = await compete(
        sample_conversation, CompetitionSpec(_slots(short, long), [HeuristicJudge()], rubric)
    )

    for entry in result.leaderboard:
        assert result.trace_for(entry.id).scores["heuristic"].total == pytest.approx(entry.score)
    assert [e.score for e in result.leaderboard] == [1.0, 0.2]
