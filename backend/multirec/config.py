"""Configuration settings for the recommendation engine"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Multi-model Recommendation Engine"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "production"

    # Database Settings
    POSTGRES_USER: str = "recommender"
    POSTGRES_PASSWORD: str = "recommender_pass"
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "bookstore"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Per-store overrides (interaction history vs. assignments/events)
    INTERACTION_STORE_URL: Optional[str] = None
    ASSIGNMENT_STORE_URL: Optional[str] = None

    @property
    def INTERACTION_DATABASE_URL(self) -> str:
        return self.INTERACTION_STORE_URL or self.DATABASE_URL

    @property
    def ASSIGNMENT_DATABASE_URL(self) -> str:
        return self.ASSIGNMENT_STORE_URL or self.DATABASE_URL

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 5  # seconds to wait for a pooled connection
    DB_STATEMENT_TIMEOUT_MS: int = 5000

    # Celery Settings
    CELERY_BROKER_URL: str = "redis://redis:6379/2"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/3"

    # Recommendation Settings
    DEFAULT_MODEL_IDS: List[int] = [1, 2, 3]
    DEFAULT_RECOMMENDATION_LIMIT: int = 10
    MAX_RECOMMENDATION_LIMIT: int = 100
    COLLABORATIVE_K_NEIGHBORS: int = 20
    CONTENT_CATEGORY_WEIGHT: float = 3.0
    CONTENT_AUTHOR_WEIGHT: float = 2.0
    CONTENT_MAX_KEYWORDS: int = 10

    # Event Log Settings
    EVENT_BUFFER_SIZE: int = 10000  # in-memory events kept while the store is down

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
