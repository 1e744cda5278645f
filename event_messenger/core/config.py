"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./data/app.db")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "./data/uploads")

    # Outbound mail
    SMTP_SERVER: str = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", "")
    SMTP_USE_SSL: bool = os.getenv("SMTP_USE_SSL", "false").lower() in ("1", "true", "yes")
    SMTP_TIMEOUT: int = 30

    # Scheduling
    SCHEDULER_ENABLED: bool = True
    NOTIFICATION_HOUR: int = 8  # local time, 0-23
    CLEANUP_HOUR: int = 2
    CLEANUP_INTERVAL_DAYS: int = 7
    CLEANUP_GRACE_DAYS: int = 30
    SCHEDULER_TASK_TIMEOUT_SECONDS: int = 600

    # Notification email
    MAX_SUBMISSIONS_PER_EMAIL: int = 150  # keeps the email under SMTP size limits

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Submission limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    MAX_IMAGE_WIDTH: int = 800
    MAX_NAME_LENGTH: int = 100
    MAX_MESSAGE_LENGTH: int = 500

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

settings = Settings()
