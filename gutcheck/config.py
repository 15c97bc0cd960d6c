"""Application configuration read from the environment."""

import os
from dataclasses import dataclass
from typing import Literal

HealthDataSource = Literal["mock", "samples"]
LiteratureSource = Literal["canned", "pubmed"]
InsightsSource = Literal["model", "rules"]


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)}, got {value!r}")
    return value


@dataclass
class AppConfig:
    """Settings for every client and service the application builds."""

    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    chat_model: str = "openai/gpt-4"
    vision_model: str = "anthropic/claude-sonnet-4.5"
    insights_model: str = "anthropic/claude-3.5-sonnet"

    supabase_url: str | None = None
    supabase_key: str | None = None

    health_data_source: HealthDataSource = "mock"
    literature_source: LiteratureSource = "canned"
    insights_source: InsightsSource = "model"

    chat_rate_limit: str = "20/minute"
    session_timeout_minutes: int = 60
    log_level: str = "INFO"

    @property
    def uses_row_store(self) -> bool:
        """Whether a PostgREST endpoint is configured."""
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from environment variables.

        Raises:
            ValueError: If a variable holds an unsupported value
        """
        timeout = os.getenv("SESSION_TIMEOUT_MINUTES", "60")
        try:
            session_timeout_minutes = int(timeout)
        except ValueError as e:
            raise ValueError(f"SESSION_TIMEOUT_MINUTES must be an integer, got {timeout!r}") from e

        return cls(
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY"),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", cls.openrouter_base_url),
            chat_model=os.getenv("OPENROUTER_CHAT_MODEL", cls.chat_model),
            vision_model=os.getenv("OPENROUTER_VISION_MODEL", cls.vision_model),
            insights_model=os.getenv("OPENROUTER_INSIGHTS_MODEL", cls.insights_model),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_key=os.getenv("SUPABASE_KEY") or None,
            health_data_source=_choice("HEALTH_DATA_SOURCE", "mock", ("mock", "samples")),
            literature_source=_choice("LITERATURE_SOURCE", "canned", ("canned", "pubmed")),
            insights_source=_choice("INSIGHTS_SOURCE", "model", ("model", "rules")),
            chat_rate_limit=os.getenv("CHAT_RATE_LIMIT", cls.chat_rate_limit),
            session_timeout_minutes=session_timeout_minutes,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
