from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "hireloop"
    app_env: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/hireloop.db"
    data_dir: Path = Path("./data")

    session_key: str = "default"
    session_expiry_hours: int = 24
    autosave: bool = True
    trend_threshold: int = 5

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("session_expiry_hours", "trend_threshold")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("value must be zero or positive")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
