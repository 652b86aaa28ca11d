"""Request-level entry points: turn plain request data into core calls."""

import logging
from dataclasses import dataclass, field

from llm_arena.competition import CompetitionSpec, ProviderSlot, compete
from llm_arena.conversation import Conversation
from llm_arena.errors import ConfigurationError
from llm_arena.judges.base import Judge
from llm_arena.judges.heuristic import HeuristicJudge
from llm_arena.judges.llm import LLMJudge
from llm_arena.models import CompetitionResult, RubricSpec
from llm_arena.providers.base import ChatResult
from llm_arena.providers.registry import ProviderRegistry
from llm_arena.traces import TraceSink

logger = logging.getLogger(__name__)


@dataclass
class JudgeSpec:
    type: str                   # "heuristic" or "llm"
    target: str | None = None   # "provider/model", required for llm judges

    @classmethod
    def parse(cls, text: str) -> "JudgeSpec":
        """Parse ``heuristic`` or ``llm:provider/model``."""
        judge_type, _, target = text.partition(":")
        return cls(type=judge_type.strip(), target=target.strip() or None)


@dataclass
class InvokeRequest:
    conversation: Conversation
    target: str                 # "provider/model"
    system: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class CompeteRequest:
    conversation: Conversation
    targets: list[str]          # "provider/model" per slot, in fan-out order
    rubric: RubricSpec
    mode: str = "round-robin"
    judges: list[JudgeSpec] = field(default_factory=list)
    system: str | None = None
    cascade_threshold: float = 0.8


def build_judges(registry: ProviderRegistry, judge_specs: list[JudgeSpec]) -> list[Judge]:
    """Instantiate judges from specs; defaults to a single heuristic judge."""
    if not judge_specs:
        return [HeuristicJudge()]

    judges: list[Judge] = []
    for spec in judge_specs:
        if spec.type == "heuristic":
            judges.append(HeuristicJudge())
        elif spec.type == "llm":
            if not spec.target:
                raise ConfigurationError("LLM judge requires a 'provider/model' target")
            provider, model = registry.resolve(spec.target)
            # distinct names so several llm judges can be weighted separately
            name = "llm" if sum(s.type == "llm" for s in judge_specs) == 1 else f"llm:{spec.target}"
            judges.append(LLMJudge(provider, model, name=name))
        else:
            raise ConfigurationError(f"Unknown judge type: {spec.type}")
    return judges


async def invoke_operation(registry: ProviderRegistry, request: InvokeRequest) -> ChatResult:
    provider, model = registry.resolve(request.target)
    return await provider.chat(
        request.conversation,
        target_model=model,
        system=request.system,
        temperature=request.temperature,
        max_tokens=request.max_tokens,
    )


async def compete_operation(
    registry: ProviderRegistry,
    request: CompeteRequest,
    tracer: TraceSink | None = None,
) -> CompetitionResult:
    """Resolve providers and judges from the registry, then run the competition."""
    slots = [ProviderSlot(*registry.resolve(target)) for target in request.targets]
    judges = build_judges(registry, request.judges)
    logger.info(
        "Competing %d slot(s) in %s mode with judges: %s",
        len(slots), request.mode, ", ".join(j.name for j in judges),
    )
    spec = CompetitionSpec(
        providers=slots,
        judges=judges,
        rubric=request.rubric,
        mode=request.mode,
        system=request.system,
        cascade_threshold=request.cascade_threshold,
    )
    return await compete(request.conversation, spec, tracer)
