"""Application configuration loaded from config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

PROVIDERS = ("anthropic", "openai")

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}

DEFAULT_FAST_MODELS = {
    "anthropic": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o-mini",
}


def _check_range(name: str, value: float, low: float, high: float | None = None) -> None:
    if value < low or (high is not None and value > high):
        bound = f">= {low}" if high is None else f"between {low} and {high}"
        raise ValueError(f"{name} must be {bound}, got {value!r}")


@dataclass(frozen=True)
class LLMConfig:
    provider: str = "anthropic"
    model: str | None = None
    fast_model: str | None = None
    temperature: float = 0.0
    max_tokens: int = 4096
    timeout: int = 30

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(f"provider must be one of {PROVIDERS}, got {self.provider!r}")
        _check_range("temperature", self.temperature, 0.0, 2.0)
        _check_range("max_tokens", self.max_tokens, 1)
        _check_range("timeout", self.timeout, 1, 600)

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    @property
    def resolved_fast_model(self) -> str:
        return self.fast_model or DEFAULT_FAST_MODELS[self.provider]


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool = True
    ttl_seconds: int = 3600
    max_entries: int = 1000

    def __post_init__(self):
        _check_range("ttl_seconds", self.ttl_seconds, 1)
        _check_range("max_entries", self.max_entries, 1)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    delay_ms: int = 1000
    backoff_ms: tuple[int, ...] = (1000, 2000, 4000)

    def __post_init__(self):
        _check_range("max_attempts", self.max_attempts, 1, 10)
        _check_range("delay_ms", self.delay_ms, 0)
        # YAML gives lists; keep the dataclass hashable
        object.__setattr__(self, "backoff_ms", tuple(self.backoff_ms))
        for value in self.backoff_ms:
            _check_range("backoff_ms", value, 0)


@dataclass(frozen=True)
class SelectorConfig:
    max_jobs: int = 5
    max_skills: int = 15
    max_accomplishments_per_job: int = 4
    min_relevance_score: float = 0.3
    model: str | None = None

    def __post_init__(self):
        _check_range("max_jobs", self.max_jobs, 0)
        _check_range("max_skills", self.max_skills, 0)
        _check_range("max_accomplishments_per_job", self.max_accomplishments_per_job, 0)
        _check_range("min_relevance_score", self.min_relevance_score, 0.0, 1.0)


@dataclass(frozen=True)
class CommitteeConfig:
    max_rounds: int = 3
    consensus_threshold: float = 0.1
    target_fit: float = 0.8
    fast_mode: bool = False
    primary_model: str | None = None
    fast_model: str | None = None

    def __post_init__(self):
        _check_range("max_rounds", self.max_rounds, 1, 10)
        _check_range("consensus_threshold", self.consensus_threshold, 0.0, 1.0)
        _check_range("target_fit", self.target_fit, 0.0, 1.0)


@dataclass(frozen=True)
class PipelineConfig:
    selector: SelectorConfig = field(default_factory=SelectorConfig)
    committee: CommitteeConfig = field(
        default_factory=lambda: CommitteeConfig(
            max_rounds=2, target_fit=0.75, fast_mode=True,
        )
    )
    skip_committee: bool = False
    fallback_to_selection: bool = True


@dataclass(frozen=True)
class UsageConfig:
    db_path: str = "~/.resume-optimizer/usage.db"

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    usage: UsageConfig = field(default_factory=UsageConfig)


def _pipeline_from_raw(raw: dict) -> PipelineConfig:
    raw = dict(raw)
    selector = SelectorConfig(**raw.pop("selector", {}))
    committee_raw = raw.pop("committee", None)
    if committee_raw is None:
        return PipelineConfig(selector=selector, **raw)
    defaults = PipelineConfig().committee
    merged = {
        "max_rounds": defaults.max_rounds,
        "target_fit": defaults.target_fit,
        "fast_mode": defaults.fast_mode,
        **committee_raw,
    }
    return PipelineConfig(selector=selector, committee=CommitteeConfig(**merged), **raw)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults.

    ``LLM_PROVIDER`` and ``LLM_MODEL`` environment variables override the
    ``llm`` section.
    """
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    llm_raw = dict(raw.get("llm", {}))
    if os.environ.get("LLM_PROVIDER"):
        llm_raw["provider"] = os.environ["LLM_PROVIDER"]
    if os.environ.get("LLM_MODEL"):
        llm_raw["model"] = os.environ["LLM_MODEL"]

    return AppConfig(
        llm=LLMConfig(**llm_raw),
        cache=CacheConfig(**raw.get("cache", {})),
        retry=RetryConfig(**raw.get("retry", {})),
        pipeline=_pipeline_from_raw(raw.get("pipeline", {})),
        usage=UsageConfig(**raw.get("usage", {})),
    )
