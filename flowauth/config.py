"""Configuration settings for Flowauth."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./flowauth.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))

    # One-time tokens
    VERIFICATION_TOKEN_TTL_HOURS: int = int(os.getenv("VERIFICATION_TOKEN_TTL_HOURS", "24"))
    RESET_TOKEN_TTL_MINUTES: int = int(os.getenv("RESET_TOKEN_TTL_MINUTES", "60"))

    # Passwords
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))
    PASSWORD_REQUIRE_MIXED: bool = _flag("PASSWORD_REQUIRE_MIXED", "true")

    # Login posture
    REQUIRE_EMAIL_VERIFICATION: bool = _flag("REQUIRE_EMAIL_VERIFICATION", "true")
    LOGIN_REVEAL_FAILURE_REASON: bool = _flag("LOGIN_REVEAL_FAILURE_REASON", "false")

    # Email
    EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "console")
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _flag("SMTP_USE_TLS", "true")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@flowauth.local")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = _flag("DEBUG", "false")

    def __init__(self) -> None:
        if not self.JWT_SECRET_KEY:
            self.JWT_SECRET_KEY = secrets.token_urlsafe(32)
            self._generated_secret = True
        else:
            self._generated_secret = False

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if self._generated_secret:
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.EMAIL_BACKEND == "smtp" and not self.SMTP_HOST:
            errors.append("EMAIL_BACKEND is 'smtp' but SMTP_HOST is empty - emails will fail to send")
        if self.EMAIL_BACKEND not in ("console", "smtp"):
            errors.append(f"Unknown EMAIL_BACKEND '{self.EMAIL_BACKEND}' - falling back to console")
        if self.BCRYPT_ROUNDS < 10 and not self.is_development:
            errors.append("BCRYPT_ROUNDS is below 10 outside development")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
