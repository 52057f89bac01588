"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    layoutsvg_env: str = "development"
    layoutsvg_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Generative model
    model_generate: str = "claude-sonnet-4-5-20250929"
    model_max_tokens: int = 4096
    model_temperature: float = 0.7

    # Orchestration
    generation_timeout_s: float = 30.0
    generation_max_retries: int = 3
    retry_backoff_ms: int = 1000
    autofit_padding: float = 0.15

    # Layer analysis
    layer_cache_size: int = 256
    merge_similarity_threshold: float = 0.7

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
