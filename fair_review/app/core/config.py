"""Application configuration and settings management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    app_name: str = Field(default="公平竞争审查平台")
    api_prefix: str = Field(default="/api")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    database_url: str = Field(
        default_factory=lambda: f"sqlite:///{Path.cwd() / 'fair_review.db'}"
    )
    database_echo: bool = Field(default=False)

    cors_origins: List[str] = Field(default_factory=list)

    # Generation backend for POST /api/review
    llm_provider: str = Field(default="stub")
    llm_api_key: Optional[str] = Field(default=None)
    llm_base_url: str = Field(default="https://dashscope.aliyuncs.com/compatible-mode/v1")
    llm_model: str = Field(default="qwen-plus")
    llm_timeout: float = Field(default=60.0)
    llm_max_attempts: int = Field(default=1, ge=1, le=10)

    # Project review workflow
    review_generator: str = Field(default="demo")
    review_timeout_seconds: float = Field(default=60.0, gt=0)
    demo_delay_seconds: float = Field(default=2.0, ge=0)
    review_async_mode_default: bool = Field(default=True)

    model_config = {
        "env_file": ".env",
        "env_prefix": "FCR_",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[arg-type]


settings = get_settings()
"""Eagerly instantiated settings for modules that prefer direct import."""
