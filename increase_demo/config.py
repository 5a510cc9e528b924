"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode API keys or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Increase Demo"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    STATIC_DIR: str = os.getenv("STATIC_DIR", "dist")

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./increase_demo.db"
    )

    # Increase sandbox
    INCREASE_BASE_URL: str = os.getenv(
        "INCREASE_BASE_URL", "https://sandbox.increase.com"
    )
    INCREASE_DASHBOARD_URL: str = os.getenv(
        "INCREASE_DASHBOARD_URL", "https://dashboard.increase.com"
    )
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    # Setup form defaults
    INCREASE_API_KEY: str = os.getenv("INCREASE_API_KEY", "")
    DEFAULT_COMPANY_NAME: str = os.getenv("DEFAULT_COMPANY_NAME", "")

    # Seconds to wait for simulated deposits to settle before
    # the banking setup spends from the account.
    SETUP_SETTLE_DELAY_SECONDS: float = float(
        os.getenv("SETUP_SETTLE_DELAY_SECONDS", "2")
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
