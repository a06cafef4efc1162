from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "verwatch"
    database_url: str = "sqlite:///./verwatch.db"
    github_token: str | None = None
    cache_ttl_minutes: int = 30
    auto_refresh_enabled: bool = True
    auto_refresh_interval: int = 60
    scheduler_enabled: bool = True
    max_concurrent_fetches: int = 5
    fetch_timeout_seconds: float = 10.0
    probe_timeout_seconds: float = 10.0
    lock_timeout_seconds: float = 5.0
    log_dir: str = "logs"
    log_level: str = "INFO"
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
