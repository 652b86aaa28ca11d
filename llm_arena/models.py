"""Plain dataclasses for candidates, scores, competition results and debates."""

from dataclasses import dataclass, field
from typing import Literal

DebateWinner = Literal["A", "B", "tie"]


@dataclass(frozen=True)
class TokenUsage:
    prompt: int
    completion: int
    total: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", self.prompt + self.completion)


@dataclass(frozen=True)
class Candidate:
    id: str                # "<provider>:<model>"
    text: str
    provider_name: str
    model_name: str
    usage: TokenUsage | None = None

    @classmethod
    def from_output(
        cls,
        provider_name: str,
        model_name: str,
        text: str,
        usage: TokenUsage | None = None,
    ) -> "Candidate":
        return cls(
            id=f"{provider_name}:{model_name}",
            text=text,
            provider_name=provider_name,
            model_name=model_name,
            usage=usage,
        )


@dataclass
class RubricSpec:
    weights: dict[str, float]
    keywords: list[str] | None = None
    judge_weights: dict[str, float] | None = None

    def __post_init__(self) -> None:
        for criterion, weight in self.weights.items():
            if weight < 0:
                raise ValueError(f"Rubric weight for {criterion!r} must be >= 0, got {weight}")
        for judge_name, weight in (self.judge_weights or {}).items():
            if weight < 0:
                raise ValueError(f"Judge weight for {judge_name!r} must be >= 0, got {weight}")


@dataclass
class Score:
    total: float
    breakdown: dict[str, float] = field(default_factory=dict)
    reasoning: str | None = None


@dataclass(frozen=True)
class LeaderboardEntry:
    candidate: Candidate
    score: float

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def text(self) -> str:
        return self.candidate.text


@dataclass
class CandidateTrace:
    candidate: Candidate
    scores: dict[str, Score] = field(default_factory=dict)  # judge name -> raw score


@dataclass
class CompetitionResult:
    winner: LeaderboardEntry
    leaderboard: list[LeaderboardEntry]
    traces: list[CandidateTrace]
    mode: str = "round-robin"

    def trace_for(self, candidate_id: str) -> CandidateTrace | None:
        return next((t for t in self.traces if t.candidate.id == candidate_id), None)


@dataclass(frozen=True)
class DebateRound:
    turn: int
    provider_a_response: str
    provider_b_critique: str
    provider_a_refined: str


@dataclass(frozen=True)
class DebateScores:
    a: float
    b: float


@dataclass
class DebateState:
    """Debate progress. Rounds only grow in turn order; the verdict is set once."""

    prompt: str
    rounds: list[DebateRound] = field(default_factory=list)
    winner: DebateWinner | None = None
    scores: DebateScores | None = None

    def add_round(self, debate_round: DebateRound) -> None:
        expected = len(self.rounds) + 1
        if debate_round.turn != expected:
            raise ValueError(f"Expected debate turn {expected}, got {debate_round.turn}")
        if self.is_concluded:
            raise ValueError("Cannot add rounds to a concluded debate")
        self.rounds.append(debate_round)

    def conclude(self, winner: DebateWinner, scores: DebateScores | None) -> None:
        if self.is_concluded:
            raise ValueError("Debate verdict has already been declared")
        self.winner = winner
        self.scores = scores

    @property
    def is_concluded(self) -> bool:
        return self.winner is not None


@dataclass
class DebateJudgment:
    score: float
    reasoning: str = ""
