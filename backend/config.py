"""Pydantic settings loaded from .env and the environment."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)


class Settings(BaseSettings):
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'db.sqlite3'}"

    # External agent
    OPENAI_API_KEY: str = ""
    AGENT_MODEL: str = "gpt-4o-mini"
    AGENT_TIMEOUT: float = 60.0
    AGENT_INSTRUCTIONS: str = (
        "You are a helpful assistant that can answer questions and use tools if needed."
    )

    WEATHER_API_URL: str = "https://wttr.in"
    WEATHER_TIMEOUT: float = 10.0

    BCRYPT_ROUNDS: int = 10

    # Reject appends to conversations owned by another user (fall back to the
    # caller's own latest conversation instead).
    ENFORCE_CONVERSATION_OWNERSHIP: bool = True

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    PORT: int = 3000

    model_config = ConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
