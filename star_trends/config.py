import os
import logging
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from star_trends.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# GitHub's Events API only keeps a bounded recent tail per repository.
DEFAULT_RECENCY_DAYS = 30

# Environment variable -> Settings field
ENV_FIELDS = {
    "GITHUB_API_BASE": "api_base",
    "STAR_TRENDS_RECENCY_DAYS": "recency_days",
    "STAR_TRENDS_REQUEST_TIMEOUT": "request_timeout",
    "STAR_TRENDS_SEARCH_PAGE_SIZE": "search_page_size",
    "STAR_TRENDS_EVENTS_PAGE_SIZE": "events_page_size",
    "STAR_TRENDS_EVENTS_MAX_PAGES": "events_max_pages",
    "STAR_TRENDS_LOG_LEVEL": "log_level",
}

class Settings(BaseModel):
    """Runtime settings, read once at startup."""
    model_config = ConfigDict(frozen=True)

    api_base: str = "https://api.github.com"
    recency_days: int = Field(default=DEFAULT_RECENCY_DAYS, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    search_page_size: int = Field(default=30, ge=1, le=100)
    events_page_size: int = Field(default=100, ge=1, le=100)
    events_max_pages: int = Field(default=3, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value


def load_settings(env_file: str = None) -> Settings:
    """
    Loads an optional .env file, then builds Settings from the environment.

    Raises:
        ConfigurationError: if any provided value fails validation.
    """
    load_dotenv(env_file)

    values = {
        field: os.getenv(env_name)
        for env_name, field in ENV_FIELDS.items()
        if os.getenv(env_name)
    }

    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.debug(f"Loaded settings: {settings}")
    return settings
