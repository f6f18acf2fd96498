"""Tests for config loading."""

import pytest

from resume_optimizer.config import AppConfig, LLMConfig, UsageConfig, load_config


@pytest.fixture(autouse=True)
def _clear_llm_env(monkeypatch):
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    monkeypatch.delenv("LLM_MODEL", raising=False)


class TestConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.llm.provider == "anthropic"
        assert config.llm.resolved_model == "claude-sonnet-4-20250514"
        assert config.llm.resolved_fast_model == "claude-haiku-4-5-20251001"
        assert config.cache.ttl_seconds == 3600
        assert config.retry.backoff_ms == (1000, 2000, 4000)

    def test_pipeline_committee_defaults(self):
        config = AppConfig()
        assert config.pipeline.committee.max_rounds == 2
        assert config.pipeline.committee.target_fit == 0.75
        assert config.pipeline.committee.fast_mode is True
        assert config.pipeline.selector.max_jobs == 5
        assert config.pipeline.fallback_to_selection is True

    def test_load_config_defaults(self, tmp_path):
        """Loading from non-existent path returns defaults."""
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config == AppConfig()

    def test_load_config_from_yaml(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "llm:\n  provider: openai\n  model: gpt-4o-mini\n"
            "retry:\n  backoff_ms: [10, 20]\n"
            "pipeline:\n  selector:\n    max_skills: 8\n  committee:\n    max_rounds: 4\n"
        )
        config = load_config(yaml_path)
        assert config.llm.provider == "openai"
        assert config.llm.resolved_model == "gpt-4o-mini"
        assert config.llm.resolved_fast_model == "gpt-4o-mini"
        assert config.retry.backoff_ms == (10, 20)
        assert config.pipeline.selector.max_skills == 8
        assert config.pipeline.committee.max_rounds == 4
        # Unspecified committee fields keep the pipeline defaults
        assert config.pipeline.committee.fast_mode is True
        assert config.pipeline.committee.target_fit == 0.75

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.setenv("LLM_MODEL", "gpt-4o")
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.llm.provider == "openai"
        assert config.llm.model == "gpt-4o"

    def test_empty_yaml(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("")
        assert load_config(yaml_path) == AppConfig()

    def test_usage_resolved_path(self):
        resolved = UsageConfig(db_path="~/usage.db").resolved_db_path
        assert "~" not in str(resolved)

    def test_frozen_config(self):
        config = LLMConfig()
        with pytest.raises(AttributeError):
            config.model = "changed"
