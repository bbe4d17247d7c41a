"""Application settings.

Values come from the environment, with a per-environment dotenv file:
``.env.dev`` in development and ``.env.prod`` in production. Tests read no
file at all and run on defaults.
"""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENVIRONMENTS = ("development", "production", "test")
LLM_PROVIDERS = ("anthropic", "gemini")

_ENV_FILES = {"development": ".env.dev", "production": ".env.prod"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    APP_NAME: str = "Prompt Grader"
    ENVIRONMENT: str = "development"

    # Accepts a list, a CSV string, or a JSON array string
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Model provider
    LLM_PROVIDER: str = "anthropic"
    ANTHROPIC_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    ANALYSIS_MODEL: str = "claude-sonnet-4-5-20250929"
    ANALYSIS_MAX_TOKENS: int = 4096
    LLM_HTTP_TIMEOUT_SECONDS: float = 60.0

    # Longest prompt accepted by /analyze, in characters
    MAX_PROMPT_CHARS: int = 8000

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: object) -> list[str]:
        if isinstance(v, str):
            raw = v.strip()
            if raw.startswith("["):
                try:
                    v = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise ValueError("CORS_ORIGINS is not a valid JSON array") from e
                if not isinstance(v, list):
                    raise ValueError("CORS_ORIGINS JSON must be a list")
            else:
                v = raw.split(",")
        if not isinstance(v, list):
            raise ValueError("CORS_ORIGINS must be a list or a string")
        return [str(origin).strip() for origin in v if str(origin).strip()]

    @field_validator("LLM_PROVIDER")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        provider = v.strip().lower()
        if provider not in LLM_PROVIDERS:
            raise ValueError(f"LLM_PROVIDER must be one of {', '.join(LLM_PROVIDERS)}")
        return provider

    @model_validator(mode="after")
    def _reject_wildcard_with_credentials(self) -> "Settings":
        """Browsers refuse ``*`` together with credentials; fail at startup."""
        if self.ALLOW_CREDENTIALS and "*" in self.CORS_ORIGINS:
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True cannot be "
                "combined with CORS_ORIGINS='*'. List the allowed origins."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in ENVIRONMENTS:
        raise ValueError(f"ENVIRONMENT must be one of {', '.join(ENVIRONMENTS)}")

    # `_env_file` is a runtime-only pydantic-settings argument
    return Settings(_env_file=_ENV_FILES.get(env))  # type: ignore[call-arg]
