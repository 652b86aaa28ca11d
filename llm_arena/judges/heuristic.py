"""Deterministic rubric scoring from length, keyword hits and markdown structure."""

import re

from llm_arena.judges.base import Judge
from llm_arena.models import Candidate, RubricSpec, Score

_HEADING = re.compile(r"^#{1,3}\s+.+$", re.MULTILINE)
_LIST_ITEM = re.compile(r"^[-*]\s+.+$", re.MULTILINE)
_CODE_BLOCK = re.compile(r"```.+```", re.DOTALL)
_LINK = re.compile(r"\[.+\]\(.+\)")
_EMPHASIS = re.compile(r"\*\*.+\*\*|__.+__")

# (pattern, bonus) on top of the 0.5 baseline
_STRUCTURE_BONUSES = [
    (_HEADING, 0.10),
    (_LIST_ITEM, 0.10),
    (_CODE_BLOCK, 0.15),
    (_LINK, 0.10),
    (_EMPHASIS, 0.05),
]


def score_length(text: str) -> float:
    length = len(text)
    if length < 50:
        return 0.2
    if length < 80:
        return 0.6
    if length <= 2000:
        return 1.0
    return 0.8


def score_keywords(text: str, keywords: list[str]) -> float:
    if not keywords:
        return 0.0
    lower_text = text.lower()
    found = [kw for kw in keywords if kw.lower() in lower_text]
    return len(found) / len(keywords)


def score_structure(text: str) -> float:
    score = 0.5
    for pattern, bonus in _STRUCTURE_BONUSES:
        if pattern.search(text):
            score += bonus
    return min(score, 1.0)


def evaluate(text: str, rubric: RubricSpec) -> Score:
    """Score ``text``; only criteria with a non-zero weight are computed."""
    weights = rubric.weights
    breakdown: dict[str, float] = {}

    if weights.get("length"):
        breakdown["length"] = score_length(text)
    if weights.get("keywords") and rubric.keywords:
        breakdown["keywords"] = score_keywords(text, rubric.keywords)
    if weights.get("structure"):
        breakdown["structure"] = score_structure(text)

    total_weight = sum(weights[key] for key in breakdown)
    if total_weight <= 0:
        return Score(total=0.0, breakdown=breakdown)

    total = sum(sub_score * weights[key] for key, sub_score in breakdown.items()) / total_weight
    return Score(total=total, breakdown=breakdown)


class HeuristicJudge(Judge):
    """Pure judge: the same candidate and rubric always give the same score."""

    name = "heuristic"

    async def score(self, candidate: Candidate, rubric: RubricSpec) -> Score:
        return evaluate(candidate.text, rubric)
