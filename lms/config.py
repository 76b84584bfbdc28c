"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "School Learning Platform"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Progress & completion
    COMPLETION_THRESHOLD: int = 100  # percent
    ANALYTICS_CACHE_TTL: int = 300  # 5 minutes

    # Object storage (S3 compatible)
    STORAGE_ENDPOINT_URL: Optional[str] = None
    STORAGE_ACCESS_KEY: Optional[str] = None
    STORAGE_SECRET_KEY: Optional[str] = None
    STORAGE_REGION: str = "auto"
    STORAGE_BUCKET: str = "content-files"
    STORAGE_PUBLIC_URL: str = "http://localhost:9000"

    # Certificates
    CERTIFICATE_FALLBACK_DIR: str = "/tmp/certificates"
    CERTIFICATE_FOOTER: str = "Rwanda Secondary Education Online Learning Platform"
    CERTIFICATE_REQUIRE_COMPLETION: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
