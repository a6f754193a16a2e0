"""Configuration management for the ORT Prep learning service."""

from typing import List, Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "ORT Prep Learning Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    SERVICE_NAME: str = "ortprep-service"
    SERVICE_PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./ortprep.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # JWT
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60

    # Gamification
    POINTS_PER_LEVEL: int = 500
    POINTS_LESSON_COMPLETED: int = 50
    POINTS_TEST_CORRECT_ANSWER: int = 10
    EARLY_BIRD_START_HOUR: int = 5
    EARLY_BIRD_END_HOUR: int = 7
    NIGHT_OWL_START_HOUR: int = 22
    NIGHT_OWL_END_HOUR: int = 2
    MASTERY_MASTERED_SCORE: int = 80
    MASTERY_IN_PROGRESS_SCORE: int = 50

    # Leaderboard
    LEADERBOARD_SIZE: int = Field(default=10, ge=1, le=100)
    WEEKLY_WINDOW_DAYS: int = 7

    # In-memory state
    MINI_TEST_SESSION_TTL_SECONDS: int = 3600
    MINI_TEST_FINISHED_TTL_SECONDS: int = 300
    MINI_TEST_MAX_SESSIONS_PER_USER: int = 5
    EVENT_QUEUE_MAX_SIZE: int = Field(default=50, ge=1)

    # AI gateway
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    AI_MODEL: str = "google/gemini-2.5-flash"
    AI_REQUEST_TIMEOUT: float = 60.0
    AI_DEFAULT_LANGUAGE: str = Field(default="ru", pattern="^(ru|kg|en)$")
    ORT_QUESTION_COUNT: int = 30

    # Logging
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|plain)$")

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    # Monitoring
    ENABLE_METRICS: bool = True

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
