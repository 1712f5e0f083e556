"""Runtime settings for the denial and appeal engine."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RCM_APPEALS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI enhancement
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RCM_APPEALS_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="Credential for the enhancement model; enhancement is skipped when unset",
    )
    openai_model: str = Field(default="gpt-4o-mini", description="Chat model used to enhance letters")
    ai_timeout_seconds: float = Field(default=20.0, gt=0, description="Upper bound for a single enhancement call")

    # Deadlines
    response_window_days: int = Field(default=45, gt=0, description="Days the payer has to answer an appeal")
    default_appeal_window_days: int = Field(
        default=60, gt=0, description="Appeal window applied when the payer did not state a deadline"
    )

    appeal_number_max_attempts: int = Field(default=5, ge=1)

    data_dir: Path = Field(default=Path("data"), description="Relative paths resolve against the working directory")
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
