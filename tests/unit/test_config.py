"""
Unit Tests for Settings
=======================
"""

import pytest
from pydantic import ValidationError

from dealer_query.config import Settings


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("DEALER_QUERY_LLM_PROVIDER", raising=False)
        settings = Settings(_env_file=None)
        assert settings.llm_provider == "none"
        assert settings.default_limit == 10
        assert settings.max_limit == 100
        assert settings.carryover_turns == 1
        assert settings.llm_sql_generation is False

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("DEALER_QUERY_LLM_PROVIDER", "mock")
        monkeypatch.setenv("DEALER_QUERY_CARRYOVER_TURNS", "3")
        monkeypatch.setenv("DEALER_QUERY_LLM_REVIEW", "true")
        settings = Settings(_env_file=None)
        assert settings.llm_provider == "mock"
        assert settings.carryover_turns == 3
        assert settings.llm_review is True

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, llm_provider="anthropic")

    def test_non_positive_limit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_limit=0)
