"""Judge interfaces for competitions and debates."""

from abc import ABC, abstractmethod

from llm_arena.models import Candidate, DebateJudgment, RubricSpec, Score


class Judge(ABC):
    """Scores one candidate against a rubric. ``name`` keys judge weights."""

    name: str = "judge"

    @abstractmethod
    async def score(self, candidate: Candidate, rubric: RubricSpec) -> Score:
        """Return a Score with ``total`` in [0, 1]."""
        ...


class DebateJudge(ABC):
    """Scores one debate answer against the debate prompt."""

    @abstractmethod
    async def score(self, prompt: str, response: str) -> DebateJudgment:
        ...


class RubricDebateJudge(DebateJudge):
    """Lets any rubric judge adjudicate a debate by scoring each answer as a candidate."""

    def __init__(self, judge: Judge, rubric: RubricSpec) -> None:
        self._judge = judge
        self._rubric = rubric

    async def score(self, prompt: str, response: str) -> DebateJudgment:
        candidate = Candidate.from_output("debate", self._judge.name, response)
        result = await self._judge.score(candidate, self._rubric)
        return DebateJudgment(score=result.total, reasoning=result.reasoning or "")
