# backend/snapline/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "snapline"
    database_url: str = "sqlite:///./snapline.db"

    # Dramatiq broker
    redis_url: str = "redis://localhost:6379/0"
    use_stub_broker: bool = False

    # Upper bound for the number of values bound in one IN (...) clause
    max_in_clause: int = Field(default=1000, ge=1)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="SNAPLINE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
