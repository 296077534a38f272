"""
Configuration settings for the Progress Service
"""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App
    APP_NAME: str = "Progress Service"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # AWS
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles
    AWS_SECRET_ACCESS_KEY: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles

    # DynamoDB
    DYNAMODB_ENDPOINT: Optional[str] = None  # None uses AWS, set for LocalStack
    DYNAMODB_USERS_TABLE: str = "CodeBattleUsers"
    DYNAMODB_SOLVED_PROBLEMS_TABLE: str = "SolvedProblems"
    DYNAMODB_SOLVE_OUTBOX_TABLE: str = "CodeBattleSolveOutbox"
    DYNAMODB_USER_STREAKS_TABLE: str = "CodeBattleUserStreaks"
    DYNAMODB_DAILY_SOLVED_TABLE: str = "CodeBattleDailySolved"

    # Streaks
    STREAK_TIMEZONE: str = "UTC"  # Calendar used to decide what "today" is
    STREAK_MAX_RETRIES: int = 3  # Optimistic lock retries on concurrent touch

    # Codeforces
    CODEFORCES_API_URL: str = "https://codeforces.com/api"
    CODEFORCES_TIMEOUT_SECONDS: float = 10.0

    # Gamification
    XP_PER_LEVEL: int = 500  # XP per level division (Bronze I -> Bronze II)

    # Leaderboards
    LEADERBOARD_LIMIT: int = 100

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns cached settings instance (singleton)"""
    return Settings()
