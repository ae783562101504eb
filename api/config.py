"""
API configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # Database
    DB_PATH: str = os.getenv("CARLISTING_DB", "./data/db/carlisting.db")

    # API settings
    API_TITLE: str = "Used Car Listings API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Search and extraction API for imported used-car listings"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500
    MAX_EXPORT_ROWS: int = 10000

    # Window for the "recently seen" statistic
    ACTIVE_DAYS: int = int(os.getenv("ACTIVE_DAYS", "7"))

    # Only listings with this status are searchable; empty means all
    SEARCH_STATUS: str = os.getenv("SEARCH_STATUS", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "api.log")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.DB_PATH:
            raise ValueError("CARLISTING_DB must not be empty")
        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {cls.LOG_LEVEL}")


# Global config instance
config = Config()
