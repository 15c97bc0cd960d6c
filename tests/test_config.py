"""Tests for configuration, service wiring and rate limiting."""

import pytest
from fakes import ScriptedCompletionClient

from gutcheck.config import AppConfig
from gutcheck.container import ServiceContainer
from gutcheck.services.bowel_insights import BowelInsightService, RuleBasedInsightGenerator
from gutcheck.services.entries import InMemoryEntryRepository
from gutcheck.services.health_data import MockHealthDataProvider, SampleHealthDataProvider
from gutcheck.services.literature import CannedLiteratureSearch, PubMedLiteratureSearch
from gutcheck.utils.rate_limit import ChatRateLimiter

ENV_VARS = [
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "OPENROUTER_CHAT_MODEL",
    "OPENROUTER_VISION_MODEL",
    "OPENROUTER_INSIGHTS_MODEL",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "HEALTH_DATA_SOURCE",
    "LITERATURE_SOURCE",
    "INSIGHTS_SOURCE",
    "CHAT_RATE_LIMIT",
    "SESSION_TIMEOUT_MINUTES",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestAppConfig:
    """Tests for reading configuration from the environment."""

    def test_defaults(self, clean_env):
        config = AppConfig.from_env()

        assert config.openrouter_api_key is None
        assert config.openrouter_base_url == "https://openrouter.ai/api/v1"
        assert config.chat_model == "openai/gpt-4"
        assert config.vision_model == "anthropic/claude-sonnet-4.5"
        assert config.insights_model == "anthropic/claude-3.5-sonnet"
        assert config.health_data_source == "mock"
        assert config.literature_source == "canned"
        assert config.insights_source == "model"
        assert config.chat_rate_limit == "20/minute"
        assert config.session_timeout_minutes == 60
        assert not config.uses_row_store

    def test_overrides(self, clean_env):
        clean_env.setenv("OPENROUTER_API_KEY", "sk-test")
        clean_env.setenv("OPENROUTER_CHAT_MODEL", "openai/gpt-4o")
        clean_env.setenv("SUPABASE_URL", "https://project.supabase.co")
        clean_env.setenv("SUPABASE_KEY", "anon")
        clean_env.setenv("LITERATURE_SOURCE", "PubMed")
        clean_env.setenv("SESSION_TIMEOUT_MINUTES", "15")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = AppConfig.from_env()

        assert config.openrouter_api_key == "sk-test"
        assert config.chat_model == "openai/gpt-4o"
        assert config.uses_row_store
        assert config.literature_source == "pubmed"
        assert config.session_timeout_minutes == 15
        assert config.log_level == "DEBUG"

    def test_invalid_choice(self, clean_env):
        clean_env.setenv("HEALTH_DATA_SOURCE", "fitbit")

        with pytest.raises(ValueError, match="HEALTH_DATA_SOURCE"):
            AppConfig.from_env()

    def test_invalid_timeout(self, clean_env):
        clean_env.setenv("SESSION_TIMEOUT_MINUTES", "soon")

        with pytest.raises(ValueError, match="SESSION_TIMEOUT_MINUTES"):
            AppConfig.from_env()


class TestServiceContainer:
    """Tests for building services from configuration."""

    def test_requires_api_key_without_client(self):
        with pytest.raises(ValueError, match="OPENROUTER_API_KEY"):
            ServiceContainer(AppConfig())

    def test_defaults_to_local_backends(self):
        container = ServiceContainer(AppConfig(), llm_client=ScriptedCompletionClient())

        assert isinstance(container.entries, InMemoryEntryRepository)
        assert isinstance(container.literature, CannedLiteratureSearch)
        assert isinstance(container.health_data, MockHealthDataProvider)
        assert isinstance(container.insights, BowelInsightService)
        assert container.row_store is None
        assert container.registry.get_tool_names() == [
            "queryUserData",
            "searchPubMed",
            "getHealthData",
            "analyzeHealthPatterns",
        ]

    def test_alternative_sources(self):
        config = AppConfig(health_data_source="samples", literature_source="pubmed", insights_source="rules")

        container = ServiceContainer(config, llm_client=ScriptedCompletionClient())

        assert isinstance(container.health_data, SampleHealthDataProvider)
        assert isinstance(container.literature, PubMedLiteratureSearch)
        assert isinstance(container.insights, RuleBasedInsightGenerator)

    @pytest.mark.asyncio
    async def test_aclose(self):
        llm = ScriptedCompletionClient()
        container = ServiceContainer(AppConfig(), llm_client=llm)

        await container.aclose()

        assert llm.closed


class TestChatRateLimiter:
    """Tests for per-user chat rate limiting."""

    def test_limit_per_identity(self):
        limiter = ChatRateLimiter("3/minute")

        assert [limiter.allow("u1") for _ in range(4)] == [True, True, True, False]
        assert limiter.allow("u2")
