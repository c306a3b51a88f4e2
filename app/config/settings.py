import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is for local development only. Set DATABASE_URL to a PostgreSQL
    connection string in production.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info("Using DATABASE_URL from environment")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "lifting_buddy.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    embedding_model: str = Field(default="text-embedding-3-small", validation_alias="EMBEDDING_MODEL")
    embedding_dimension: int = Field(
        default=1536,
        validation_alias="EMBEDDING_DIMENSION",
        description="Dimension of stored and query embeddings",
    )
    generation_model: str = Field(default="gpt-4o-mini", validation_alias="GENERATION_MODEL")
    provider_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="PROVIDER_TIMEOUT_SECONDS",
        description="Timeout shared by embedding and generation calls",
    )
    match_threshold: float = Field(
        default=0.5,
        validation_alias="MATCH_THRESHOLD",
        description="Minimum cosine similarity for semantic workout matches",
    )
    match_count: int = Field(
        default=5,
        validation_alias="MATCH_COUNT",
        description="Maximum number of semantic workout matches",
    )
    max_date_range_records: int = Field(
        default=500,
        validation_alias="MAX_DATE_RANGE_RECORDS",
        description="Cap on records returned for a date-range question",
    )
    auth_secret_key: str = Field(default="", validation_alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")
    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")  # Comma-separated list
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="Optional path of a rotating log file, in addition to stderr",
    )
    log_rotation: str = Field(default="10 MB", validation_alias="LOG_ROTATION")
    log_retention: str = Field(default="7 days", validation_alias="LOG_RETENTION")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("match_threshold")
    @classmethod
    def validate_match_threshold(cls, value: float) -> float:
        """Cosine similarity thresholds live in [0, 1]."""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"MATCH_THRESHOLD must be between 0 and 1, got {value}")
        return value

    @field_validator("match_count", "max_date_range_records", "embedding_dimension")
    @classmethod
    def validate_positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Expected a positive integer, got {value}")
        return value

    @field_validator("provider_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"PROVIDER_TIMEOUT_SECONDS must be positive, got {value}")
        return value

    @field_validator("auth_secret_key")
    @classmethod
    def validate_auth_secret(cls, value: str) -> str:
        """Empty secret is allowed for local development, with a warning."""
        if not value:
            logger.warning("AUTH_SECRET_KEY is not set. Authenticated endpoints will reject every token.")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
