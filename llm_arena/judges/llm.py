"""Model-backed judge: asks a provider to grade a candidate and parses its JSON verdict."""

import json
import logging
import uuid

from pydantic import BaseModel, Field, ValidationError

from llm_arena.conversation import append_message, new_conversation
from llm_arena.judges.base import Judge
from llm_arena.models import Candidate, RubricSpec, Score
from llm_arena.providers.base import AIProvider

logger = logging.getLogger(__name__)

JUDGE_TEMPERATURE = 0.3
FALLBACK_REASONING = "Failed to parse LLM response"

_PROMPT_TEMPLATE = """You are a judge evaluating AI-generated responses.

Score the following response on these criteria: {criteria}

Response to evaluate:
\"\"\"
{response}
\"\"\"

Provide your evaluation as JSON with this exact structure:
{{
  "total": <number between 0 and 1>,
  "breakdown": {{
    {breakdown}
  }},
  "reasoning": "<brief explanation>"
}}"""


class JudgeVerdict(BaseModel):
    """Shape the judge model is asked to return."""

    total: float
    breakdown: dict[str, float] = Field(default_factory=dict)
    reasoning: str | None = None


class JudgeParseError(ValueError):
    """The judge model's reply held no usable verdict."""


def build_prompt(candidate: Candidate, rubric: RubricSpec) -> str:
    criteria = list(rubric.weights)
    breakdown = ",\n    ".join(f'"{name}": <number between 0 and 1>' for name in criteria)
    return _PROMPT_TEMPLATE.format(
        criteria=", ".join(criteria),
        response=candidate.text,
        breakdown=breakdown,
    )


def extract_json_object(text: str) -> dict:
    """Return the first JSON object embedded in ``text``.

    Prose and markdown fences around the object are ignored.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    raise JudgeParseError("No JSON object found in judge response")


def parse_verdict(text: str) -> Score:
    try:
        verdict = JudgeVerdict.model_validate(extract_json_object(text))
    except ValidationError as exc:
        raise JudgeParseError(f"Judge response has the wrong shape: {exc}") from exc
    return Score(total=verdict.total, breakdown=dict(verdict.breakdown), reasoning=verdict.reasoning)


def fallback_score() -> Score:
    return Score(total=0.5, breakdown={}, reasoning=FALLBACK_REASONING)


class LLMJudge(Judge):
    """Grades candidates with a provider model.

    Never raises: provider errors and unparseable replies both produce the
    fallback score (0.5, empty breakdown).
    """

    def __init__(self, provider: AIProvider, model: str, name: str = "llm") -> None:
        self._provider = provider
        self._model = model
        self.name = name

    async def score(self, candidate: Candidate, rubric: RubricSpec) -> Score:
        prompt = build_prompt(candidate, rubric)
        conversation = append_message(
            new_conversation(f"judge-{uuid.uuid4().hex[:12]}"), "user", prompt
        )

        try:
            result = await self._provider.chat(
                conversation,
                target_model=self._model,
                temperature=JUDGE_TEMPERATURE,
            )
        except Exception as exc:
            logger.warning(
                "LLM judge %s/%s failed on %s: %s",
                self._provider.name(), self._model, candidate.id, exc,
            )
            return fallback_score()

        try:
            return parse_verdict(result.output_text or "")
        except JudgeParseError as exc:
            logger.warning("Failed to parse LLM judge response for %s: %s", candidate.id, exc)
            return fallback_score()
