"""
Configuration: Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- `DATABASE_URL` is the only required field; a missing value raises a
  validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from anymo_backend.database.config.config import settings

# Example
db_url = settings.DATABASE_URL
ml_url = settings.ML_API_URL

Security
--------
- Never commit secrets or the `.env` file to source control.
- `API_KEY` is only read when the reformatting endpoint is called.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = Field(..., description="SQLAlchemy URL of the chat record database.")
    ML_API_URL: str = Field(
        "https://anymo-ml.onrender.com",
        description="Base URL of the ML service exposing `/suicide-risk` and `/sentiment`.",
    )
    ANALYSIS_MAX_ATTEMPTS: int = Field(3, ge=1, description="Attempts per analysis call before falling back.")
    ANALYSIS_RETRY_DELAY_SECONDS: float = Field(2.0, ge=0.0, description="Fixed wait between analysis attempts.")
    ANALYSIS_HTTP_TIMEOUT_SECONDS: float = Field(10.0, gt=0.0, description="Transport timeout of a single analysis attempt.")
    API_KEY: str = Field("", description="OpenAI API key used by the transcript reformatter.")
    OPEN_AI_MODEL: str = Field("gpt-4o-mini", description="Chat model name used for structured reformatting.")
    REFORMAT_TIMEOUT_SECONDS: float = Field(15.0, gt=0.0, description="Timeout of the single reformatting call.")
    FRONTEND_URL: str = Field("*", description="Allowed CORS origin(s), comma separated.")
    PORT: int = Field(8080, description="Port the uvicorn server binds to.")
    LOG_LEVEL: str = Field("INFO", description="Root logging level.")

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_postgres_scheme(cls, value: str) -> str:
        # SQLAlchemy only registers the `postgresql` dialect name
        if value.startswith("postgres://"):
            return "postgresql://" + value[len("postgres://"):]
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the environment / `.env` file"""
