"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "TaskBreaker Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://taskbreaker@localhost:5432/taskbreaker"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 500
    openai_timeout_seconds: float = 30.0
    ai_titles_enabled: bool = True
    # Header the upstream auth gateway uses to forward the signed-in user's id.
    auth_user_header: str = "X-User-Id"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "taskbreaker"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
