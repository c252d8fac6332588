"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Restwell Backend"
    debug: bool = False
    log_level: str = "INFO"
    engine_log_level: str | None = None
    database_url: str = "postgresql+psycopg2://restwell@localhost:5432/restwell"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "restwell"
    engine_version: str = "v1.0"
    ideal_map_path: str | None = None
    plan_timezone: str = "Asia/Kolkata"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
