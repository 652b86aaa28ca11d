"""Click CLI: loads config, builds the provider registry, runs competitions and debates."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from config.config_loader import AppConfig, load_config
from llm_arena.conversation import append_message, new_conversation, redact_secrets
from llm_arena.debate import DebateConfig, DebateCoordinator
from llm_arena.errors import ArenaError
from llm_arena.healthcheck import run_health_checks
from llm_arena.judges.base import RubricDebateJudge
from llm_arena.models import RubricSpec
from llm_arena.operations import CompeteRequest, JudgeSpec, build_judges, compete_operation
from llm_arena.output import (
    print_debate,
    print_leaderboard,
    save_competition_report,
    save_debate_report,
)
from llm_arena.prompt_file import as_list, parse_file
from llm_arena.providers.base import ProviderError
from llm_arena.providers.registry import ProviderRegistry, build_registry
from llm_arena.traces import NullTraceEmitter, TraceEmitter, TraceSink

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, float]:
    """Parse repeated ``name=number`` options."""
    pairs: dict[str, float] = {}
    for value in values:
        name, sep, number = value.partition("=")
        try:
            if not sep or not name.strip():
                raise ValueError
            pairs[name.strip()] = float(number)
        except ValueError:
            raise click.BadParameter(f"expected NAME=NUMBER, got {value!r}", param_hint=option) from None
    return pairs


def _read_prompt(prompt: str | None, prompt_file: str | None) -> tuple[str, dict, str | None]:
    """Return (prompt_text, frontmatter, slug_override). --file wins over the argument."""
    if prompt_file:
        path = Path(prompt_file)
        text, meta = parse_file(path)
        return text, meta, path.stem
    if prompt:
        return prompt, {}, None
    _fail("Provide a PROMPT argument or --file.")


def _make_tracer(config: AppConfig, enabled: bool) -> TraceSink:
    if not enabled:
        return NullTraceEmitter()
    return TraceEmitter(min_level=config.defaults.trace_level, fmt=config.defaults.trace_format)


def _build_rubric(
    config: AppConfig,
    weights: dict[str, float],
    keywords: list[str],
    judge_weights: dict[str, float],
) -> RubricSpec:
    try:
        return RubricSpec(
            weights=weights or dict(config.defaults.rubric_weights),
            keywords=keywords or list(config.defaults.keywords) or None,
            judge_weights=judge_weights or None,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


async def _default_targets(registry: ProviderRegistry) -> list[str]:
    """One ``provider/model`` target per registered provider, on its first model."""
    targets: list[str] = []
    for name, provider in registry.items():
        models = await provider.list_models()
        if models:
            targets.append(f"{name}/{models[0]}")
    return targets


@click.group()
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Path to settings.yaml (default: config/settings.yaml)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """LLM Arena -- compare model responses and run judged debates.

    \b
    Examples:
      llm-arena compete "Explain Python decorators" -p openai/gpt-4o-mini -p anthropic/claude-3-5-haiku-20241022
      llm-arena compete --file question.md --judge heuristic --judge llm:openai/gpt-4o-mini
      llm-arena debate "Tabs or spaces?" --a openai/gpt-4o-mini --b google/gemini-2.5-flash --rounds 2
      llm-arena models
      llm-arena health
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(Path(config_path)) if config_path else load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    ctx.obj = config


@main.command()
@click.argument("prompt", required=False)
@click.option("--file", "prompt_file", type=click.Path(exists=True), help="Read prompt from .md file")
@click.option("--provider", "-p", "targets", multiple=True,
              help="provider/model to compete (repeatable, default: every available provider)")
@click.option("--judge", "-j", "judges", multiple=True,
              help="'heuristic' or 'llm:provider/model' (repeatable, default: from config)")
@click.option("--weight", "-w", "weights", multiple=True, help="Rubric criterion weight, e.g. length=1")
@click.option("--keyword", "-k", "keywords", multiple=True, help="Keyword for the keywords criterion")
@click.option("--judge-weight", "judge_weights", multiple=True, help="Judge weight, e.g. heuristic=0.3")
@click.option("--mode", default=None, help="round-robin or cascade (default: from config)")
@click.option("--threshold", type=float, default=None, help="Cascade stop score (default: from config)")
@click.option("--system", default=None, help="System prompt sent to every provider")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--trace", is_flag=True, help="Emit structured trace events")
@click.option("--no-save", is_flag=True, help="Do not write a markdown report")
@click.pass_obj
def compete(
    config: AppConfig,
    prompt: str | None,
    prompt_file: str | None,
    targets: tuple[str, ...],
    judges: tuple[str, ...],
    weights: tuple[str, ...],
    keywords: tuple[str, ...],
    judge_weights: tuple[str, ...],
    mode: str | None,
    threshold: float | None,
    system: str | None,
    output_path: str | None,
    trace: bool,
    no_save: bool,
) -> None:
    """Send PROMPT to several models, judge the answers and rank them."""
    prompt_text, meta, slug = _read_prompt(prompt, prompt_file)

    # CLI flags win; frontmatter fills in when a flag is not set; config last
    rubric = _build_rubric(
        config,
        _parse_pairs(weights, "--weight") or {k: float(v) for k, v in meta.get("weights", {}).items()},
        list(keywords) or as_list(meta.get("keywords")),
        _parse_pairs(judge_weights, "--judge-weight"),
    )
    judge_specs = [
        JudgeSpec.parse(j)
        for j in (judges or as_list(meta.get("judges")) or config.defaults.judges)
    ]
    effective_mode = mode or str(meta.get("mode", config.defaults.mode))
    effective_threshold = threshold if threshold is not None else config.defaults.cascade_threshold
    output_dir = Path(output_path) if output_path else config.defaults.output_dir

    registry = build_registry(config)
    if not len(registry):
        _fail("No providers available. Check API keys in .env.")

    async def _run():
        effective_targets = list(targets) or as_list(meta.get("providers")) or await _default_targets(registry)
        conversation = redact_secrets(append_message(new_conversation(), "user", prompt_text))
        request = CompeteRequest(
            conversation=conversation,
            targets=effective_targets,
            rubric=rubric,
            mode=effective_mode,
            judges=judge_specs,
            system=system,
            cascade_threshold=effective_threshold,
        )
        console.print(
            f"\n[bold cyan]LLM Arena[/bold cyan] -- {len(effective_targets)} candidates [{effective_mode}]"
        )
        console.print(f"Candidates: {', '.join(effective_targets)}\n")
        return await compete_operation(registry, request, _make_tracer(config, trace))

    try:
        result = asyncio.run(_run())
    except (ArenaError, ProviderError) as exc:
        _fail(str(exc))

    print_leaderboard(result)

    if not no_save:
        saved = save_competition_report(result, prompt_text, output_dir, slug_override=slug)
        console.print(f"\n[dim]Saved to: {saved}[/dim]")


@main.command()
@click.argument("prompt", required=False)
@click.option("--file", "prompt_file", type=click.Path(exists=True), help="Read prompt from .md file")
@click.option("--a", "provider_a", default=None, help="provider/model answering and refining")
@click.option("--b", "provider_b", default=None, help="provider/model critiquing")
@click.option("--rounds", default=None, type=int, help="Number of debate rounds (default: from config)")
@click.option("--judge", "judge", default=None,
              help="'heuristic' or 'llm:provider/model' (default: first judge in config)")
@click.option("--no-judge", is_flag=True, help="Run the rounds without declaring a winner")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--trace", is_flag=True, help="Emit structured trace events")
@click.option("--no-save", is_flag=True, help="Do not write a markdown report")
@click.pass_obj
def debate(
    config: AppConfig,
    prompt: str | None,
    prompt_file: str | None,
    provider_a: str | None,
    provider_b: str | None,
    rounds: int | None,
    judge: str | None,
    no_judge: bool,
    output_path: str | None,
    trace: bool,
    no_save: bool,
) -> None:
    """Run a respond/critique/refine debate on PROMPT between two models."""
    prompt_text, meta, slug = _read_prompt(prompt, prompt_file)

    effective_a = provider_a or meta.get("provider_a")
    effective_b = provider_b or meta.get("provider_b")
    if not effective_a or not effective_b:
        _fail("Both --a and --b (provider/model) are required.")

    effective_rounds = (
        rounds if rounds is not None
        else int(meta["rounds"]) if "rounds" in meta
        else config.defaults.debate_rounds
    )
    output_dir = Path(output_path) if output_path else config.defaults.output_dir

    registry = build_registry(config)
    if not len(registry):
        _fail("No providers available. Check API keys in .env.")

    debate_judge = None
    judge_label = None
    if not no_judge:
        judge_label = judge or meta.get("judge") or (config.defaults.judges or ["heuristic"])[0]
        rubric = _build_rubric(config, {}, as_list(meta.get("keywords")), {})
        try:
            rubric_judge = build_judges(registry, [JudgeSpec.parse(str(judge_label))])[0]
        except ArenaError as exc:
            _fail(str(exc))
        debate_judge = RubricDebateJudge(rubric_judge, rubric)

    debate_config = DebateConfig(
        provider_a=str(effective_a),
        provider_b=str(effective_b),
        prompt=prompt_text,
        rounds=effective_rounds,
        judge=judge_label,
    )
    coordinator = DebateCoordinator(registry, debate_judge, _make_tracer(config, trace))

    console.print(
        f"\n[bold cyan]LLM Arena Debate[/bold cyan] -- {effective_a} vs {effective_b}, "
        f"{effective_rounds} round(s)\n"
    )

    try:
        state = asyncio.run(coordinator.run_debate(debate_config))
    except (ArenaError, ProviderError) as exc:
        _fail(str(exc))

    print_debate(state, debate_config.provider_a, debate_config.provider_b)

    if not no_save:
        saved = save_debate_report(
            state, debate_config.provider_a, debate_config.provider_b, output_dir, slug_override=slug
        )
        console.print(f"\n[dim]Saved to: {saved}[/dim]")


@main.command()
@click.pass_obj
def models(config: AppConfig) -> None:
    """List the models each available provider can target."""
    registry = build_registry(config)

    async def _collect() -> dict[str, list[str]]:
        listed: dict[str, list[str]] = {}
        for name, provider in registry.items():
            try:
                listed[name] = await provider.list_models()
            except Exception as exc:
                logger.warning("Could not list models for %s: %s", name, exc)
                listed[name] = []
        return listed

    table = Table("Provider", "Models")
    for name, model_ids in asyncio.run(_collect()).items():
        table.add_row(name, ", ".join(model_ids) or "-")
    console.print(table)


@main.command()
@click.pass_obj
def health(config: AppConfig) -> None:
    """Ping every available provider and report which ones respond."""
    registry = build_registry(config)
    providers = dict(registry.items())
    if not providers:
        _fail("No providers available. Check API keys in .env.")

    console.print("\n[bold]Checking providers...[/bold]")
    results = asyncio.run(run_health_checks(providers))

    failed = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed.append(name)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
