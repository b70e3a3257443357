"""
SnackSpot Auckland - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No production secrets are hardcoded. Use .env for local development.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL: SQLAlchemy URL for users and refresh tokens
        JWT_SECRET_KEY: HMAC key used to sign access tokens
        JWT_ISSUER: Issuer claim written to and required on access tokens
        JWT_AUDIENCE: Audience claim written to and required on access tokens
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime
        REFRESH_TOKEN_EXPIRE_DAYS: Refresh token lifetime
        BCRYPT_WORK_FACTOR: bcrypt cost (log2 rounds)
        REFRESH_COOKIE_SECURE: Send the refresh cookie over HTTPS only
        ALLOWED_ORIGINS: CORS allowed origins for the SPA frontend
        LOG_LEVEL: Minimum log level
        LOG_JSON: Render logs as JSON instead of console output
    """

    # Database (PostgreSQL for production, SQLite for development)
    DATABASE_URL: str = "sqlite:///./snackspot.db"

    # Security
    JWT_SECRET_KEY: str = "dev-secret-key-change-me-at-least-256-bits-long"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "SnackSpotAuckland"
    JWT_AUDIENCE: str = "SnackSpotAuckland"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15  # Short-lived tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_WORK_FACTOR: int = 12
    REFRESH_COOKIE_SECURE: bool = True

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@dataclass(frozen=True)
class AuthConfig:
    """
    Immutable configuration for the credential and session manager.

    Built once at process start and handed to AuthManager; operations
    never consult the global settings object.
    """
    secret_key: str
    algorithm: str = "HS256"
    issuer: str = "SnackSpotAuckland"
    audience: str = "SnackSpotAuckland"
    access_token_lifetime: timedelta = timedelta(minutes=15)
    refresh_token_lifetime: timedelta = timedelta(days=30)
    bcrypt_work_factor: int = 12
    refresh_cookie_secure: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            access_token_lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_lifetime=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            bcrypt_work_factor=settings.BCRYPT_WORK_FACTOR,
            refresh_cookie_secure=settings.REFRESH_COOKIE_SECURE,
        )


settings = Settings()
