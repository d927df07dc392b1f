"""
Configuration settings for the Student Leave Management Service.

Loads configuration from environment variables with sensible defaults.
Includes settings for the database, JWT identity tokens and the
leave business rules enforced by the rule engine.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "Student Leave Management Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database Settings
    DATABASE_URL: str | None = None  # Overrides the DB_* parts when set
    DB_NAME: str = "student_leave_db"
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_CHARSET: str = "utf8mb4"
    DB_ECHO: bool = False

    # CORS Settings
    CORS_ORIGINS: str = "https://localhost,http://localhost:3000"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string."""
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return [self.CORS_ORIGINS]

    # JWT Settings (tokens are issued by the institution's identity provider)
    JWT_SECRET_KEY: str = "change-me-in-production-with-a-32-byte-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    JWT_ISSUER: str | None = None

    @property
    def database_url(self) -> str:
        """Generate the database URL, preferring an explicit DATABASE_URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+mysqldb://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset={self.DB_CHARSET}"

    # Leave Business Rules
    MIN_NOTICE_DAYS: int = 1  # Leave must start at least this many days ahead
    MAX_CONSECUTIVE_LEAVE_DAYS: int = 30  # Inclusive day count per request
    MIN_REASON_LENGTH: int = 10
    ENFORCE_OVERLAP_CHECK: bool = False  # Reject overlapping pending/approved leaves

    # Reporting
    URGENT_WINDOW_DAYS: int = 3  # Pending leave starting within this window is urgent
    SOON_WINDOW_DAYS: int = 7

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create global settings instance
settings = Settings()
