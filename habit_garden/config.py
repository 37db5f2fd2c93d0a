from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./habit_garden.db",
        description="SQLAlchemy async URL, e.g., postgresql+asyncpg://...",
    )

    # Namespace for every document path: artifacts/{APP_ID}/users/{uid}/...
    APP_ID: str = "default-habit-garden"

    # IANA zone that defines the user's calendar day; empty = process-local zone
    USER_TIMEZONE: str = ""

    # Generative suggestions (any OpenAI-compatible endpoint)
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_API_KEY: str = ""
    LLM_MODEL_ID: str = "google/gemini-2.0-flash-001"
    SUGGESTION_COUNT: int = 5

    MOTIVATIONAL_SAYINGS: List[str] = [
        "Consistency is the key to success.",
        "A little progress each day adds up to big results.",
        "Discipline is choosing between what you want now and what you want most.",
        "You are what you repeatedly do.",
        "The secret of your future is hidden in your daily routine.",
    ]

settings = Settings()
