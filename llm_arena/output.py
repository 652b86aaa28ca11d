"""Rich console output and markdown reports for competitions and debates."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from llm_arena.models import CompetitionResult, DebateState

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _preview(text: str, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _breakdown_str(breakdown: dict[str, float]) -> str:
    return ", ".join(f"{k}={v:.2f}" for k, v in breakdown.items()) or "-"


def print_leaderboard(result: CompetitionResult) -> None:
    """Print the ranked candidates and each judge's raw score."""
    console.print(Rule(f"[bold cyan]Leaderboard ({result.mode})[/bold cyan]"))

    table = Table(show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Candidate", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Judges")
    table.add_column("Tokens", justify="right")

    for position, entry in enumerate(result.leaderboard, start=1):
        trace = result.trace_for(entry.id)
        judges = "; ".join(
            f"{name}: {score.total:.2f} ({_breakdown_str(score.breakdown)})"
            for name, score in (trace.scores.items() if trace else [])
        )
        usage = entry.candidate.usage
        table.add_row(
            str(position),
            entry.id,
            f"{entry.score:.3f}",
            judges or "no scores",
            str(usage.total) if usage else "-",
        )
    console.print(table)

    console.print(
        Panel(
            Markdown(result.winner.text or "_(empty response)_"),
            title=f"[bold green]Winner: {result.winner.id}[/bold green]",
            subtitle=f"{result.winner.score:.3f}",
        )
    )


def print_debate(state: DebateState, provider_a: str, provider_b: str) -> None:
    """Print every round in brief, then the verdict."""
    for rnd in state.rounds:
        console.print(Rule(f"[bold cyan]Round {rnd.turn}[/bold cyan]"))
        for title, text in (
            (f"A: {provider_a} (response)", rnd.provider_a_response),
            (f"B: {provider_b} (critique)", rnd.provider_b_critique),
            (f"A: {provider_a} (refined)", rnd.provider_a_refined),
        ):
            console.print(Panel(_preview(text), title=f"[bold]{title}[/bold]", border_style="dim"))

    console.print(Rule("[bold green]Verdict[/bold green]"))
    if state.winner is None:
        console.print(Text("No judge configured; no winner declared.", style="dim"))
        return
    scores = f" (A={state.scores.a:.3f}, B={state.scores.b:.3f})" if state.scores else ""
    console.print(Text(f"Winner: {state.winner}{scores}", style="bold"))


def _write_report(lines: list[str], output_dir: Path, slug: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{slug}.md"
    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Report saved to: %s", filepath)
    return filepath


def save_competition_report(
    result: CompetitionResult,
    prompt: str,
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Save the leaderboard, judge traces and every response as markdown.

    Returns:
        Path to the saved file.
    """
    lines: list[str] = [
        f"# LLM Arena Competition: {prompt[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Mode:** {result.mode}",
        f"**Winner:** {result.winner.id} ({result.winner.score:.3f})",
        "",
        "---",
        "",
        "## Leaderboard",
        "",
        "| # | Candidate | Score |",
        "|---|-----------|-------|",
    ]
    for position, entry in enumerate(result.leaderboard, start=1):
        lines.append(f"| {position} | {entry.id} | {entry.score:.3f} |")
    lines.append("")

    for trace in result.traces:
        candidate = trace.candidate
        lines.append(f"## {candidate.id}")
        lines.append("")
        lines.append(candidate.text)
        lines.append("")
        for judge_name, score in trace.scores.items():
            line = f"- **{judge_name}:** {score.total:.3f} ({_breakdown_str(score.breakdown)})"
            if score.reasoning:
                line += f" - {score.reasoning}"
            lines.append(line)
        if not trace.scores:
            lines.append("- *No judge scores*")
        if candidate.usage:
            lines.append(
                f"\n*Tokens: {candidate.usage.prompt} prompt + "
                f"{candidate.usage.completion} completion = {candidate.usage.total}*"
            )
        lines.append("")

    slug = slug_override if slug_override is not None else _slug(prompt)
    return _write_report(lines, output_dir, slug)


def save_debate_report(
    state: DebateState,
    provider_a: str,
    provider_b: str,
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Save the full debate transcript as markdown.

    Returns:
        Path to the saved file.
    """
    lines: list[str] = [
        f"# LLM Arena Debate: {state.prompt[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Provider A:** {provider_a}",
        f"**Provider B:** {provider_b}",
        f"**Rounds:** {len(state.rounds)}",
        f"**Winner:** {state.winner or 'undecided'}",
    ]
    if state.scores:
        lines.append(f"**Scores:** A={state.scores.a:.3f}, B={state.scores.b:.3f}")
    lines += ["", "---", ""]

    for rnd in state.rounds:
        lines += [
            f"## Round {rnd.turn}",
            "",
            f"### A ({provider_a}): Response",
            "",
            rnd.provider_a_response,
            "",
            f"### B ({provider_b}): Critique",
            "",
            rnd.provider_b_critique,
            "",
            f"### A ({provider_a}): Refined",
            "",
            rnd.provider_a_refined,
            "",
        ]

    slug = slug_override if slug_override is not None else _slug(state.prompt)
    return _write_report(lines, output_dir, slug)
