"""
Pharmacopedia Search – Configuration Loader
Loads all secrets and settings from .env via environment variables.
No secret may be hard-coded anywhere in the codebase.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


def _env_list(key: str, default: str) -> list[str]:
    raw = os.environ.get(key, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Base configuration – values sourced exclusively from environment."""

    # --- Secrets ---
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    FLASK_SECRET_KEY: str = os.environ.get("FLASK_SECRET_KEY", "")

    # --- App ---
    APP_ENV: str = os.environ.get("APP_ENV", "development")
    DEBUG: bool = APP_ENV == "development"
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # --- Partitions (first one is canonical for counts and autocomplete) ---
    DRUG_PARTITIONS: list[str] = _env_list("DRUG_PARTITIONS", "drugsdata,drugsdata_0,drugsdata_1")

    # --- Search ---
    SEARCH_PARTITION_TIMEOUT: float = float(os.environ.get("SEARCH_PARTITION_TIMEOUT", "5.0"))
    SEARCH_MAX_WORKERS: int = int(os.environ.get("SEARCH_MAX_WORKERS", "8"))
    SEARCH_MAX_IN_FLIGHT: int = int(os.environ.get("SEARCH_MAX_IN_FLIGHT", "8"))
    SEARCH_PARTITION_RETRIES: int = int(os.environ.get("SEARCH_PARTITION_RETRIES", "0"))
    SEARCH_RETRY_BACKOFF: float = float(os.environ.get("SEARCH_RETRY_BACKOFF", "0.2"))
    SEARCH_MIN_QUERY_LENGTH: int = int(os.environ.get("SEARCH_MIN_QUERY_LENGTH", "2"))
    SEARCH_MAX_QUERY_LENGTH: int = int(os.environ.get("SEARCH_MAX_QUERY_LENGTH", "200"))
    SEARCH_DEFAULT_LIMIT: int = int(os.environ.get("SEARCH_DEFAULT_LIMIT", "10"))
    SEARCH_MAX_LIMIT: int = int(os.environ.get("SEARCH_MAX_LIMIT", "100"))
    AUTOCOMPLETE_LIMIT: int = int(os.environ.get("AUTOCOMPLETE_LIMIT", "10"))

    # --- Rate limiting ---
    RATE_LIMIT_DEFAULT: str = os.environ.get("RATE_LIMIT_DEFAULT", "120/minute")

    # --- Validation ---
    @classmethod
    def validate(cls) -> None:
        """Raise on missing critical environment variables."""
        required = ["DATABASE_URL", "FLASK_SECRET_KEY"]
        missing = [k for k in required if not getattr(cls, k)]
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Ensure a .env file exists with all required values."
            )
        if not cls.DRUG_PARTITIONS:
            raise EnvironmentError("DRUG_PARTITIONS must name at least one partition.")
