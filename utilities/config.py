"""
Configuration management using environment variables.
Handles storage and logging settings with proper validation and defaults.
"""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pathlib import Path


class AppConfig(BaseSettings):
    """
    Configuration class for storage and logging settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", env="MONGODB_URL")
    mongodb_database: str = Field(default="bookstore", env="MONGODB_DATABASE")
    books_collection: str = Field(default="books", env="BOOKS_COLLECTION")
    categories_collection: str = Field(default="categories", env="CATEGORIES_COLLECTION")
    users_collection: str = Field(default="users", env="USERS_COLLECTION")
    server_selection_timeout_ms: int = Field(default=5000, env="SERVER_SELECTION_TIMEOUT_MS")

    # Logging Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    # Development/Testing
    debug: bool = Field(default=False, env="DEBUG")

    @validator('server_selection_timeout_ms')
    def validate_timeout(cls, v):
        """Ensure the store timeout is reasonable."""
        if v < 100 or v > 60000:
            raise ValueError('server_selection_timeout_ms must be between 100 and 60000')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None


# Global configuration instance
config = AppConfig()
