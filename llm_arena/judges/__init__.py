"""Scoring strategies for candidates and debate answers."""

from llm_arena.judges.base import DebateJudge, Judge, RubricDebateJudge
from llm_arena.judges.heuristic import HeuristicJudge
from llm_arena.judges.llm import LLMJudge

__all__ = ["DebateJudge", "HeuristicJudge", "Judge", "LLMJudge", "RubricDebateJudge"]
