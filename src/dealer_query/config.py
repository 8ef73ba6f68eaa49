"""
Configuration
=============

Settings read from the environment (``DEALER_QUERY_`` prefix) or a ``.env``
file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Generation service
    llm_provider: Literal["none", "mock", "openai"] = "none"
    openai_model: str = "gpt-3.5-turbo"
    openai_api_key: str | None = None
    llm_timeout_seconds: float = Field(default=30.0, gt=0)

    # Per-stage generation toggles
    llm_sql_generation: bool = False
    llm_review: bool = False
    llm_composition: bool = False

    # Query shaping
    default_limit: int = Field(default=10, ge=1)
    max_limit: int = Field(default=100, ge=1)
    carryover_turns: int = Field(default=1, ge=0)
    history_max_turns: int = Field(default=10, ge=1)

    # Execution
    database_path: str = ":memory:"
    seed_sample_data: bool = True

    model_config = SettingsConfigDict(
        env_prefix="DEALER_QUERY_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
