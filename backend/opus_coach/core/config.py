"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Opus Coach Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://opus@localhost:5432/opus_coach"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "opus-coach"

    # Generative-text providers. A missing key simply removes that provider from every chain.
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-5"
    anthropic_fast_model: str = "claude-haiku-4-5"
    openai_model: str = "gpt-4o"
    openai_fast_model: str = "gpt-4o-mini"
    provider_timeout_seconds: float = 30.0
    goal_provider_order: List[str] = ["anthropic", "openai"]
    task_provider_order: List[str] = ["openai", "anthropic"]
    reflection_provider_order: List[str] = ["anthropic", "openai"]
    reflection_prompt_provider_order: List[str] = ["anthropic", "openai"]

    # Program progression
    reflection_due_days: List[int] = [5, 6]
    reflection_analysis_max_attempts: int = 2
    analysis_job_stale_minutes: int = 15

    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    reminder_hour: int = 20
    weekly_review_day: int = 6
    weekly_review_hour: int = 18
    goal_checkin_day: int = 0
    goal_checkin_hour: int = 9
    analysis_sweep_minutes: int = 10
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = False
    notifications_provider: str = "noop"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
