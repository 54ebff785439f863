"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults,
except the MongoDB connection string which must always be supplied.
"""

from functools import lru_cache

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from app.core.exceptions import MissingConfiguration


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "DevEvent API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    MONGODB_URI: str
    MONGODB_DATABASE: str = "devevent"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGODB_CONNECT_TIMEOUT_MS: int = 10000

    # Run the booking existence check and insert inside one transaction
    # when the deployment supports it (replica set or mongos).
    BOOKING_USE_TRANSACTIONS: bool = False

    # Query facade
    SIMILAR_EVENTS_LIMIT: int = 3

    model_config = {
        "env_file": ".env.local",
        "case_sensitive": True,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process. A missing MONGODB_URI is fatal."""
    try:
        settings = Settings()
    except ValidationError as e:
        missing = [
            ".".join(str(part) for part in err["loc"])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if "MONGODB_URI" in missing:
            raise MissingConfiguration("MONGODB_URI") from e
        raise

    if not settings.MONGODB_URI.strip():
        raise MissingConfiguration("MONGODB_URI")
    return settings
