"""Two-party debate: A answers, B critiques and counter-proposes, A refines."""

import logging
import uuid
from dataclasses import dataclass

from llm_arena.conversation import Conversation, append_message, new_conversation
from llm_arena.errors import ConfigurationError
from llm_arena.judges.base import DebateJudge
from llm_arena.models import DebateRound, DebateScores, DebateState, DebateWinner
from llm_arena.providers.base import AIProvider
from llm_arena.providers.registry import ProviderRegistry
from llm_arena.traces import NullTraceEmitter, TraceEvent, TraceSink

logger = logging.getLogger(__name__)

CRITIQUE_TEMPLATE = """Original question:
{prompt}

Another participant answered:
\"\"\"
{answer}
\"\"\"

Critique this answer: point out factual errors, gaps and weak reasoning.
Then propose your own, better answer to the original question."""

REFINE_TEMPLATE = """Another participant critiqued your answer and proposed an alternative:
\"\"\"
{critique}
\"\"\"

Refine your answer to the original question. Keep what holds up, fix what the
critique got right, and push back where it is wrong."""

CONTINUE_PROMPT = (
    "Continue the debate: give your current best answer to the original question, "
    "taking the whole discussion so far into account."
)


@dataclass
class DebateConfig:
    provider_a: str                 # "provider/model"
    provider_b: str                 # "provider/model"
    prompt: str
    rounds: int = 1
    judge: str | None = None        # informational, e.g. "heuristic" or "llm:openai/gpt-4o-mini"


@dataclass
class _Party:
    provider: AIProvider
    model: str
    conversation: Conversation

    async def say(self, content: str) -> str:
        """Append ``content`` as a user turn, ask the model, keep its updated history."""
        self.conversation = append_message(self.conversation, "user", content)
        return await self.reply()

    async def reply(self) -> str:
        result = await self.provider.chat(self.conversation, target_model=self.model)
        self.conversation = result.conversation
        return result.output_text or ""


def decide_winner(score_a: float, score_b: float) -> DebateWinner:
    if score_a > score_b:
        return "A"
    if score_b > score_a:
        return "B"
    return "tie"


class DebateCoordinator:
    """Runs a fixed-length debate between two providers and optionally judges it.

    The registry is required to run a debate. Without a judge the debate ends
    with the rounds only; without a tracer, trace emission is a no-op.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        judge: DebateJudge | None = None,
        tracer: TraceSink | None = None,
    ) -> None:
        self._registry = registry
        self._judge = judge
        self._tracer: TraceSink = tracer or NullTraceEmitter()

    def initialize_debate(self, config: DebateConfig) -> DebateState:
        return DebateState(prompt=config.prompt)

    def _emit(self, session_id: str, event_type, data: dict) -> None:
        self._tracer.emit(TraceEvent.create(session_id, event_type, data))

    async def run_debate(self, config: DebateConfig) -> DebateState:
        """Run every round, then judge the final answers if a judge is set.

        Raises:
            ConfigurationError: No registry, unknown provider, target without a
                model, or fewer than one round. Raised before any provider call.
            ProviderError: A debate step failed.
            Exception: Whatever the judge raises; judge errors are not absorbed.
        """
        if self._registry is None:
            raise ConfigurationError("Debate requires a provider registry")
        if config.rounds < 1:
            raise ConfigurationError(f"Debate needs at least one round, got {config.rounds}")

        provider_a, model_a = self._registry.resolve(config.provider_a)
        provider_b, model_b = self._registry.resolve(config.provider_b)

        session_id = f"debate-{uuid.uuid4().hex[:12]}"
        party_a = _Party(provider_a, model_a, new_conversation(f"{session_id}-A"))
        party_b = _Party(provider_b, model_b, new_conversation(f"{session_id}-B"))

        state = self.initialize_debate(config)
        self._emit(session_id, "competition.start", {
            "mode": "debate",
            "providerA": config.provider_a,
            "providerB": config.provider_b,
            "rounds": config.rounds,
        })
        logger.info(
            "Debate %s: %s vs %s, %d round(s)",
            session_id, config.provider_a, config.provider_b, config.rounds,
        )

        for turn in range(1, config.rounds + 1):
            self._emit(session_id, "debate.turn", {"turn": turn, "phase": "start"})

            opening = config.prompt if turn == 1 else CONTINUE_PROMPT
            response = await party_a.say(opening)
            critique = await party_b.say(CRITIQUE_TEMPLATE.format(prompt=config.prompt, answer=response))
            refined = await party_a.say(REFINE_TEMPLATE.format(critique=critique))

            state.add_round(DebateRound(
                turn=turn,
                provider_a_response=response,
                provider_b_critique=critique,
                provider_a_refined=refined,
            ))
            logger.info("Debate %s: round %d complete", session_id, turn)
            self._emit(session_id, "debate.turn", {"turn": turn, "phase": "complete"})

        if self._judge is not None:
            final = state.rounds[-1]
            judgment_a = await self._judge.score(config.prompt, final.provider_a_refined)
            judgment_b = await self._judge.score(config.prompt, final.provider_b_critique)
            state.conclude(
                decide_winner(judgment_a.score, judgment_b.score),
                DebateScores(a=judgment_a.score, b=judgment_b.score),
            )
            logger.info(
                "Debate %s winner: %s (A=%.3f, B=%.3f)",
                session_id, state.winner, judgment_a.score, judgment_b.score,
            )

        self._emit(session_id, "competition.end", {
            "mode": "debate",
            "winner": state.winner,
            "scores": {"A": state.scores.a, "B": state.scores.b} if state.scores else None,
        })
        return state
