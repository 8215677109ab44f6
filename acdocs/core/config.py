"""
Configuration Management
Loads settings from environment variables with type validation
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "ACDocs"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Persistence
    DATABASE_URL: str = "sqlite+aiosqlite:///./acdocs.db"
    DATABASE_ECHO: bool = False
    SEED_ON_STARTUP: bool = True

    # Authentication (demo: every seeded account shares one password)
    DEMO_PASSWORD: str = Field("demo", min_length=1)

    # Query cache stale windows
    CACHE_STALE_SECONDS: int = Field(300, ge=0)
    DOCUMENTS_STALE_SECONDS: int = Field(120, ge=0)

    # Expiration alerts
    EXPIRATION_CRITICAL_DAYS: int = 7
    EXPIRATION_WARNING_DAYS: int = 30
    DEFAULT_ALERT_DAYS_BEFORE: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_JSON: bool = True

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid = ["development", "staging", "production"]
        if v not in valid:
            raise ValueError(f"ENVIRONMENT must be one of {valid}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}")
        return v_upper

    @field_validator("EXPIRATION_WARNING_DAYS")
    @classmethod
    def validate_warning_window(cls, v: int, info) -> int:
        critical = info.data.get("EXPIRATION_CRITICAL_DAYS", 0)
        if v < critical:
            raise ValueError("EXPIRATION_WARNING_DAYS must not be shorter than EXPIRATION_CRITICAL_DAYS")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
