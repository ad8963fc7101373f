"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./rsvp.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")
    FIREBASE_STORAGE_BUCKET: str | None = os.getenv("FIREBASE_STORAGE_BUCKET")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")
    CLIENT_SESSION_HOURS: int = 24

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    SITE_NAME: str = "FP Pro Events"
    DEFAULT_LANGUAGE: str = "he"
    DEFAULT_INVITATION_IMAGE: str = "default-invitation.jpg"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Short codes
    EVENT_CODE_LENGTH: int = 4
    GUEST_CODE_LENGTH: int = 6
    CODE_GENERATION_ATTEMPTS: int = 10
    EVENT_SLUG_MAX_LENGTH: int = 50

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    UPLOAD_DIR: str = "uploads"

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
