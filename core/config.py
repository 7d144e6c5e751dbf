import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Project root and data directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    PROJECT_NAME: str = "App Review Scraper"
    LISTING_BASE_URL: str = "https://apps.shopify.com"
    USER_AGENT: str = DEFAULT_USER_AGENT
    REQUEST_TIMEOUT: float = Field(default=30.0, description="Per-page fetch timeout in seconds")
    MAX_PAGES: int = Field(default=50, description="Hard cap on listing pages per run")
    PAGE_DELAY_SECONDS: float = Field(default=2.0, description="Politeness delay between page fetches")
    CUTOFF_DAYS: int = Field(default=30, description="Reviews older than this many days stop pagination")
    DATABASE_PATH: Path = DATA_DIR / "reviews.db"
    APPS_CONFIG_PATH: Path = PROJECT_ROOT / "apps.yaml"
    LOG_LEVEL: str = "INFO"

    @field_validator("LISTING_BASE_URL")
    @classmethod
    def validate_listing_url(cls, v: str) -> str:
        """Ensure the listing URL is properly formatted."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"LISTING_BASE_URL must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator("MAX_PAGES", "CUTOFF_DAYS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got: {v}")
        return v

    @field_validator("PAGE_DELAY_SECONDS", "REQUEST_TIMEOUT")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"must not be negative, got: {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name; unknown names fall back to INFO with a warning."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            logger.warning("Unknown LOG_LEVEL '%s', using INFO", v)
            return "INFO"
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )


settings = Settings()
