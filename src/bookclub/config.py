# ABOUTME: Environment-driven settings for the resolver, provider client, and sessions.
# ABOUTME: Every field reads from a BOOKCLUB_-prefixed environment variable or a .env file.

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bookclub.core.dispatch import DEFAULT_REVIEW_HASHTAG
from bookclub.core.resolver import DEFAULT_MAX_CANDIDATES
from bookclub.core.sessions import DEFAULT_SESSION_EXPIRY_MS
from bookclub.db.connection import DEFAULT_DB_PATH
from bookclub.extraction.openai_backend import DEFAULT_CHEAP_MODEL, DEFAULT_STRONG_MODEL
from bookclub.extraction.pipeline import DEFAULT_TIER_TIMEOUT_S, PipelineMode
from bookclub.metadata.http import (
    DEFAULT_DELAY_MS,
    DEFAULT_INITIAL_BACKOFF_MS,
    DEFAULT_MAX_RETRIES,
)
from bookclub.metadata.similarity import DEFAULT_AUTHOR_THRESHOLD, DEFAULT_TITLE_THRESHOLD


class Settings(BaseSettings):
    """Runtime configuration.

    Reads BOOKCLUB_DELAY_MS, BOOKCLUB_MAX_RETRIES, BOOKCLUB_SESSION_EXPIRY_MS
    and so on; see the field names for the full list.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOKCLUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider pacing
    delay_ms: int = Field(default=DEFAULT_DELAY_MS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    initial_backoff_ms: int = Field(default=DEFAULT_INITIAL_BACKOFF_MS, ge=0)
    google_books_api_key: str | None = None

    # Matching
    title_similarity_threshold: float = Field(default=DEFAULT_TITLE_THRESHOLD, ge=0.0, le=1.0)
    author_similarity_threshold: float = Field(default=DEFAULT_AUTHOR_THRESHOLD, ge=0.0, le=1.0)
    max_candidates: int = Field(default=DEFAULT_MAX_CANDIDATES, ge=1)

    # Confirmation sessions
    session_expiry_ms: int = Field(default=DEFAULT_SESSION_EXPIRY_MS, gt=0)
    session_sweep_interval_s: float = Field(default=60.0, gt=0)

    # Extraction
    openai_api_key: str | None = None
    cheap_model: str = DEFAULT_CHEAP_MODEL
    strong_model: str = DEFAULT_STRONG_MODEL
    pipeline_mode: PipelineMode = PipelineMode.ESCALATE
    inference_timeout_s: float = Field(default=DEFAULT_TIER_TIMEOUT_S, gt=0)

    # Storage, chat, and logging
    db_path: Path = DEFAULT_DB_PATH
    failure_log_dir: Path = Path.home() / ".bookclub" / "failures"
    review_hashtag: str = DEFAULT_REVIEW_HASHTAG
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}, got: {v}")
        return upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings, read from the environment on first call."""
    return Settings()
