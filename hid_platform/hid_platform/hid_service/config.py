"""
Configuration management for the HID service
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """HID service configuration loaded from environment variables"""

    # Server Configuration
    ENVIRONMENT: str = "development"
    DEV_MODE: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""

    # Token Configuration
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Credential Configuration
    PASSWORD_HASH_ROUNDS: int = 10
    OTP_EXPIRE_MINUTES: int = 10

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./hid.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Outbound Mail Configuration
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "no-reply@hid.local"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("JWT_SECRET")
    @classmethod
    def secret_must_be_set(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"
