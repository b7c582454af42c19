"""
API configuration settings.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Bookstore API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # Static uploads served under /uploads
    uploads_dir: str = "uploads"

    # Administrator created on first start when the users collection is empty
    admin_api_key: Optional[str] = None
    admin_name: str = "Admin User"
    admin_email: str = "admin@example.com"

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
