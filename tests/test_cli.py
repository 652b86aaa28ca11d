"""Tests for llm_arena/cli.py -- config and providers are patched, no API calls."""

from pathlib import Path
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from llm_arena.cli import _build_rubric, _parse_pairs, main
from llm_arena.providers.registry import ProviderRegistry
from tests.conftest import MockProvider


@pytest.fixture
def cli_providers() -> dict[str, MockProvider]:
    return {
        "openai": MockProvider("openai", "Short.", ["gpt-4o-mini"]),
        "anthropic": MockProvider(
            "anthropic", "# Answer\n\n- point one\n- point two\n\n" + "detail " * 20, ["claude-3-5-haiku"]
        ),
    }


def _invoke(args: list[str], app_config, providers: dict[str, MockProvider]):
    runner = CliRunner()
    with patch("llm_arena.cli.load_config", return_value=app_config), \
            patch("llm_arena.cli.build_registry", return_value=ProviderRegistry(providers)):
        return runner.invoke(main, args)


def test_parse_pairs():
    assert _parse_pairs(("length=1", "structure=0.5"), "--weight") == {"length": 1.0, "structure": 0.5}


def test_parse_pairs_rejects_garbage():
    with pytest.raises(click.BadParameter):
        _parse_pairs(("length",), "--weight")
    with pytest.raises(click.BadParameter):
        _parse_pairs(("length=high",), "--weight")


def test_build_rubric_falls_back_to_config(sample_app_config):
    rubric = _build_rubric(sample_app_config, {}, [], {})
    assert rubric.weights == {"length": 1.0, "structure": 1.0}
    assert rubric.keywords is None


def test_build_rubric_rejects_negative_weights(sample_app_config):
    with pytest.raises(click.BadParameter):
        _build_rubric(sample_app_config, {"length": -1.0}, [], {})


def test_compete_ranks_and_saves(sample_app_config, cli_providers):
    result = _invoke(
        ["compete", "Explain decorators", "-p", "openai/gpt-4o-mini", "-p", "anthropic/claude-3-5-haiku"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 0, result.output
    assert "Winner: anthropic:claude-3-5-haiku" in result.output
    saved = list(Path(sample_app_config.defaults.output_dir).glob("*.md"))
    assert len(saved) == 1
    assert "explain-decorators" in saved[0].name


def test_compete_defaults_to_every_provider(sample_app_config, cli_providers):
    result = _invoke(["compete", "Explain decorators", "--no-save"], sample_app_config, cli_providers)
    assert result.exit_code == 0, result.output
    cli_providers["openai"].chat.assert_awaited()
    cli_providers["anthropic"].chat.assert_awaited()
    assert not Path(sample_app_config.defaults.output_dir).exists()


def test_compete_redacts_secrets(sample_app_config, cli_providers):
    result = _invoke(
        ["compete", "my key sk-abcdef123456 leaked", "-p", "openai/gpt-4o-mini", "--no-save"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 0, result.output
    sent = cli_providers["openai"].chat.call_args.args[0]
    assert "sk-abcdef123456" not in sent.messages[-1].content


def test_compete_reads_prompt_file(sample_app_config, cli_providers, tmp_path: Path):
    prompt_file = tmp_path / "decorators.md"
    prompt_file.write_text(
        "---\nproviders: openai/gpt-4o-mini\n---\nExplain decorators\n", encoding="utf-8"
    )
    result = _invoke(["compete", "--file", str(prompt_file)], sample_app_config, cli_providers)
    assert result.exit_code == 0, result.output
    cli_providers["anthropic"].chat.assert_not_awaited()
    saved = list(Path(sample_app_config.defaults.output_dir).glob("*_decorators.md"))
    assert len(saved) == 1


def test_compete_all_providers_fail(sample_app_config, cli_providers):
    for provider in cli_providers.values():
        provider.fail()
    result = _invoke(["compete", "Explain decorators", "--no-save"], sample_app_config, cli_providers)
    assert result.exit_code == 1
    assert "All providers failed" in result.output


def test_compete_unsupported_mode(sample_app_config, cli_providers):
    result = _invoke(
        ["compete", "Explain decorators", "--mode", "bracket", "--no-save"], sample_app_config, cli_providers
    )
    assert result.exit_code == 1
    assert "Unsupported competition mode" in result.output


def test_compete_requires_prompt(sample_app_config, cli_providers):
    result = _invoke(["compete"], sample_app_config, cli_providers)
    assert result.exit_code == 1
    assert "PROMPT" in result.output


def test_compete_no_providers(sample_app_config):
    result = _invoke(["compete", "Explain decorators"], sample_app_config, {})
    assert result.exit_code == 1
    assert "No providers available" in result.output


def test_debate_runs_and_judges(sample_app_config, cli_providers):
    result = _invoke(
        ["debate", "Tabs or spaces?", "--a", "anthropic/claude-3-5-haiku", "--b", "openai/gpt-4o-mini", "--no-save"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 0, result.output
    assert "Round 1" in result.output
    assert "Winner: A" in result.output


def test_debate_without_judge(sample_app_config, cli_providers):
    result = _invoke(
        ["debate", "Tabs or spaces?", "--a", "openai/gpt-4o-mini", "--b", "anthropic/claude-3-5-haiku",
         "--rounds", "2", "--no-judge"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 0, result.output
    assert "Round 2" in result.output
    assert "no winner declared" in result.output
    saved = list(Path(sample_app_config.defaults.output_dir).glob("*_tabs-or-spaces.md"))
    assert len(saved) == 1


def test_debate_requires_both_sides(sample_app_config, cli_providers):
    result = _invoke(["debate", "Tabs or spaces?", "--a", "openai/gpt-4o-mini"], sample_app_config, cli_providers)
    assert result.exit_code == 1
    assert "--a and --b" in result.output


def test_debate_unknown_provider(sample_app_config, cli_providers):
    result = _invoke(
        ["debate", "Tabs or spaces?", "--a", "openai/gpt-4o-mini", "--b", "mistral/large", "--no-save"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 1
    assert "Unknown provider" in result.output


def test_models_lists_each_provider(sample_app_config, cli_providers):
    result = _invoke(["models"], sample_app_config, cli_providers)
    assert result.exit_code == 0, result.output
    assert "gpt-4o-mini" in result.output
    assert "claude-3-5-haiku" in result.output


def test_health_reports_failures(sample_app_config, cli_providers):
    cli_providers["openai"].fail("401 Unauthorized")
    result = _invoke(["health"], sample_app_config, cli_providers)
    assert result.exit_code == 1
    assert "FAIL" in result.output
    assert "401 Unauthorized" in result.output


def test_health_all_ok(sample_app_config, cli_providers):
    result = _invoke(["health"], sample_app_config, cli_providers)
    assert result.exit_code == 0, result.output
    assert "OK" in result.output


def test_config_error_exits(cli_providers):
    runner = CliRunner()
    with patch("llm_arena.cli.load_config", side_effect=ValueError("Missing required environment variable: X")):
        result = runner.invoke(main, ["models"])
    assert result.exit_code == 1
    assert "Config error" in result.output


def test_compete_repeated_target_fails(sample_app_config, cli_providers):
    result = _invoke(
        ["compete", "Explain decorators", "-p", "openai/gpt-4o-mini", "-p", "openai/gpt-4o-mini", "--no-save"],
        sample_app_config, cli_providers,
    )
    assert result.exit_code == 1
    assert "Duplicate provider/model" in result.output
    cli_providers["openai"].chat.assert_not_awaited()
