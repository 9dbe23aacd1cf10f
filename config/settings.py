from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Optional

from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Keyword arguments
    override individual values, which is how tests build isolated settings.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    cors_origin: str = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    rate_limit: str = os.getenv("RATE_LIMIT", "100 per 15 minutes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5001"))

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./conversations.db")
    vocabulary_path: str = os.getenv("VOCABULARY_PATH", "data/bad_words.json")

    completion_provider: str = os.getenv("COMPLETION_PROVIDER", "openai")
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.3"))
    top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))
    max_output_tokens: int = int(os.getenv("MAX_OUTPUT_TOKENS", "300"))
    provider_timeout: float = float(os.getenv("PROVIDER_TIMEOUT", "30"))
    persona_prompt: Optional[str] = os.getenv("PERSONA_PROMPT")

    retention_max_records: int = int(os.getenv("RETENTION_MAX_RECORDS", "100"))
    retention_schedule: str = os.getenv("RETENTION_SCHEDULE", "0 * * * *")
    retention_enabled: bool = _env_bool("RETENTION_ENABLED", "true")

    def __init__(self, **overrides: Any) -> None:
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)
        if self.retention_max_records < 0:
            raise ValueError("RETENTION_MAX_RECORDS must be >= 0")
        if self.max_output_tokens <= 0:
            raise ValueError("MAX_OUTPUT_TOKENS must be > 0")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
