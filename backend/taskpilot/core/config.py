"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "TaskPilot Planner"
    debug: bool = False
    log_level: str = "INFO"
    local_store_url: str = "sqlite:///./taskpilot_local.db"
    backend_base_url: str = "http://localhost:8080"
    backend_timeout_seconds: float = 10.0
    user_id: int = 95
    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    ai_model: str = "microsoft/mai-ds-r1:free"
    ai_timeout_seconds: float = 30.0
    default_days: int = 7
    patch_retry_count: int = 2
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "taskpilot"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
