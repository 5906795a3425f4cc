"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Decor Showcase API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the decoration gallery, contact leads and admin uploads"
    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5000",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./decor.db"
    # Create tables from the models on startup (local SQLite development).
    # Use the Alembic revisions for PostgreSQL deployments.
    CREATE_TABLES_ON_STARTUP: bool = True

    # Admin Password
    # Either a bcrypt hash (preferred, see generate_password_hash.py) or a plain secret
    ADMIN_PASSWORD_HASH: str = ""
    ADMIN_PASSWORD: str = ""

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "change-this-in-production-use-openssl-rand-hex-32"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    UPLOAD_TOKEN_EXPIRE_SECONDS: int = 900

    # Storage Configuration: "local", "s3" or "cloudinary"
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5MB
    CONVERT_UPLOADS_TO_WEBP: bool = False

    # Public URL resolution for stored image keys
    CDN_BASE_URL: str = ""
    FALLBACK_IMAGE_URL: str = "/images/placeholder.jpg"

    # S3 Configuration
    S3_BUCKET: str = ""
    S3_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    RATE_LIMIT_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
