"""
Configuration settings for Badge Service
"""
from functools import lru_cache
import logging
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # App
    APP_NAME: str = "Badge Service"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"
    
    # AWS
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles
    AWS_SECRET_ACCESS_KEY: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles
    
    # DynamoDB (single table: athletes, history, catalog, awards)
    DYNAMODB_ENDPOINT: Optional[str] = None  # None uses AWS, set for LocalStack
    DYNAMODB_ATHLETE_TABLE: str = "peakplay-dev-athlete-data"
    
    # Evaluation
    MATCH_HISTORY_LIMIT: int = Field(default=50, ge=1)
    WELLNESS_HISTORY_LIMIT: int = Field(default=60, ge=1)
    BADGE_BATCH_SIZE: int = Field(default=8, ge=1)
    
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns cached settings instance (singleton)"""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for entry points (scripts, workers)."""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
