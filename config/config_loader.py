"""Load settings.yaml into typed dataclasses. Checks API keys at startup."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


@dataclass
class ProviderConfig:
    name: str
    sdk: str
    models: list[str]
    timeout_sec: int
    max_tokens: int
    api_key_env: str | None = None
    temperature: float = 0.7
    base_url: str | None = None

    @property
    def api_key(self) -> str:
        if not self.api_key_env:
            return ""
        return os.environ.get(self.api_key_env, "").strip()


@dataclass
class DefaultsConfig:
    output_dir: Path
    debate_rounds: int = 1
    mode: str = "round-robin"
    cascade_threshold: float = 0.8
    trace_level: str = "info"
    trace_format: str = "json"
    judges: list[str] = field(default_factory=lambda: ["heuristic"])   # "heuristic" or "llm:provider/model"
    rubric_weights: dict[str, float] = field(default_factory=dict)
    keywords: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    providers: dict[str, ProviderConfig]
    available_providers: set[str] = field(default_factory=set)


def _substitute_env(text: str) -> str:
    """Replace ${VAR} references with environment values."""

    def _lookup(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if not value:
            raise ValueError(f"Missing required environment variable: {var_name}")
        return value

    return _ENV_REF.sub(_lookup, text)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if the settings file is missing and ValueError
    if it references an unset ${VAR}. Missing API keys are logged, not raised;
    callers check available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    text = settings_path.read_text(encoding="utf-8")
    raw = yaml.safe_load(_substitute_env(text))

    defaults_raw = raw.get("defaults", {})
    rubric_raw = defaults_raw.get("rubric", {})
    defaults = DefaultsConfig(
        output_dir=Path(defaults_raw.get("output_dir", "./output")),
        debate_rounds=int(defaults_raw.get("debate_rounds", 1)),
        mode=str(defaults_raw.get("mode", "round-robin")),
        cascade_threshold=float(defaults_raw.get("cascade_threshold", 0.8)),
        trace_level=str(defaults_raw.get("trace_level", "info")),
        trace_format=str(defaults_raw.get("trace_format", "json")),
        judges=[str(j) for j in defaults_raw.get("judges", ["heuristic"])],
        rubric_weights={k: float(v) for k, v in rubric_raw.get("weights", {}).items()},
        keywords=[str(k) for k in rubric_raw.get("keywords", [])],
    )

    providers: dict[str, ProviderConfig] = {}
    available_providers: set[str] = set()

    for provider_name, provider_raw in raw["providers"].items():
        provider_cfg = ProviderConfig(
            name=provider_name,
            sdk=provider_raw["sdk"],
            models=[str(m) for m in provider_raw.get("models", [])],
            timeout_sec=int(provider_raw["timeout_sec"]),
            max_tokens=int(provider_raw["max_tokens"]),
            api_key_env=provider_raw.get("api_key_env"),
            temperature=float(provider_raw.get("temperature", 0.7)),
            base_url=provider_raw.get("base_url"),
        )
        providers[provider_name] = provider_cfg

        if not provider_cfg.api_key_env or provider_cfg.api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s - set %s in .env",
                provider_name,
                provider_cfg.api_key_env,
            )

    return AppConfig(
        defaults=defaults,
        providers=providers,
        available_providers=available_providers,
    )
