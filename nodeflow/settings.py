"""Process-wide settings using Pydantic Settings."""
from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """NodeFlow settings loaded from ``NODEFLOW_*`` environment variables.

    Built-in node types fall back to these values when a node's own
    configuration leaves a field unset.
    """

    # LLM node
    ollama_endpoint: str = "http://localhost:11434/api/chat"
    default_llm_model: str = "llama3"
    llm_temperature: float = 0.8
    llm_top_p: float = 0.9
    llm_top_k: int = 40

    # API node
    default_api_url: str = "http://127.0.0.1:8000/api/process"

    # Outbound HTTP
    http_timeout: float = 120.0

    # Delay node
    default_delay_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="NODEFLOW_", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
