"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # startups.gallery
    LISTING_URL: str = os.getenv("LISTING_URL", "https://startups.gallery")
    DETAIL_URL_TEMPLATE: str = os.getenv(
        "DETAIL_URL_TEMPLATE", "https://startups.gallery/companies/{slug}"
    )
    SITE_TITLE_SUFFIX: str = os.getenv("SITE_TITLE_SUFFIX", " | startups.gallery")
    LISTING_READY_SELECTOR: str = os.getenv("LISTING_READY_SELECTOR", 'a[href*="/companies/"]')
    DETAIL_READY_SELECTOR: str = os.getenv("DETAIL_READY_SELECTOR", "h1")

    # Cache
    CACHE_FILE: Path = Path(os.getenv("CACHE_FILE", str(DATA_DIR / "startups_cache.json")))
    FRESHNESS_HOURS: float = float(os.getenv("FRESHNESS_HOURS", "24"))

    # Scraper
    MAX_COMPANIES: int = int(os.getenv("MAX_COMPANIES", "20"))
    CONCURRENCY: int = int(os.getenv("CONCURRENCY", "5"))
    RATE_PER_DOMAIN: float = float(os.getenv("RATE_PER_DOMAIN", "2.0"))
    NAV_TIMEOUT: int = int(os.getenv("NAV_TIMEOUT", "30"))
    READY_TIMEOUT: int = int(os.getenv("READY_TIMEOUT", "15"))
    SETTLE_TIMEOUT: int = int(os.getenv("SETTLE_TIMEOUT", "3"))
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API Security
    API_KEY: str | None = os.getenv("API_KEY")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        errors = []
        if "{slug}" not in cls.DETAIL_URL_TEMPLATE:
            errors.append("DETAIL_URL_TEMPLATE must contain '{slug}'")
        if cls.MAX_COMPANIES < 1:
            errors.append("MAX_COMPANIES must be >= 1")
        if cls.CONCURRENCY < 1:
            errors.append("CONCURRENCY must be >= 1")
        if cls.FRESHNESS_HOURS <= 0:
            errors.append("FRESHNESS_HOURS must be > 0")
        if cls.MAX_RETRIES < 1:
            errors.append("MAX_RETRIES must be >= 1")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
