"""
Configuration management using .env file
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file"""
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # OpenAI (or any OpenAI-compatible endpoint)
    openai_api_key: str = ""
    llm_base_url: str = ""  # Example: "https://api.upstage.ai/v1"
    generation_model: str = "gpt-4o-mini"
    tool_model: str = "gpt-4o-mini"
    generation_temperature: float = 0.7
    llm_timeout: int = 30  # seconds

    # Language tools
    native_language_codes: list = ["en", "hi"]  # generated natively, never re-translated
    translation_enabled: bool = True
    translation_max_attempts: int = 2
    translation_retry_wait: float = 0.5  # exponential backoff multiplier (seconds)

    # Quiz session
    auto_advance_delay: float = 1.0  # seconds between answer feedback and next question
    results_path: str = "/quiz-results"
    session_ttl: int = 3600  # idle session lifetime in seconds (0 = never expire)

    # LangSmith
    langsmith_api_key: str = ""
    langsmith_project: str = "quizcam"
    langsmith_tracing: bool = True

    # Application
    environment: str = "development"
    debug: bool = True

    # Logging
    log_dir: str = "logs"
    log_level: str = ""  # empty = per-environment default

    # CORS
    cors_origins: list = ["http://localhost:3000", "http://localhost:9002"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
