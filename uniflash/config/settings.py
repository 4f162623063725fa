from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Uniflash Review Service"
    database_url: str = "sqlite:///./uniflash.db"
    preferences_path: Path = Path("preferences.yaml")

    model_config = {"env_prefix": "UNIFLASH_", "env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
