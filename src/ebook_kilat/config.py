"""
Configuration management.

Values come from the environment (optionally a .env file loaded through
python-dotenv). Invalid numeric values fall back to the defaults.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid integer for {name}: {value!r}")
        return default


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable, falling back on bad values."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid number for {name}: {value!r}")
        return default


@dataclass
class Settings:
    """Runtime settings shared by the workspace API and the relay."""

    # --- Gemini ---
    gemini_api_key: Optional[str] = None
    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: int = 120

    # --- Relay ---
    relay_base_url: str = "http://localhost:3002"
    relay_timeout: int = 120
    relay_rate_limit: str = "30/minute"

    # --- Retry policy ---
    retry_attempts: int = 3
    retry_base_delay: float = 2.0

    # --- Generation pacing ---
    toc_delay_seconds: float = 0.8
    default_language: str = "id"

    # --- Storage ---
    local_store_path: str = "data/local_storage.db"
    projects_collection: str = "projects"
    api_keys_collection: str = "user_api_keys"
    google_credentials_base64: Optional[str] = None
    firebase_credentials_path: str = "serviceAccountKey.json"

    # --- Flask ---
    secret_key: str = "default-dev-key-CHANGE-ME"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            text_model=os.getenv("GEMINI_TEXT_MODEL", cls.text_model),
            image_model=os.getenv("GEMINI_IMAGE_MODEL", cls.image_model),
            gemini_api_base=os.getenv("GEMINI_API_BASE", cls.gemini_api_base),
            gemini_timeout=_env_int("GEMINI_TIMEOUT", cls.gemini_timeout),
            relay_base_url=os.getenv("RELAY_BASE_URL", cls.relay_base_url),
            relay_timeout=_env_int("RELAY_TIMEOUT", cls.relay_timeout),
            relay_rate_limit=os.getenv("RELAY_RATE_LIMIT", cls.relay_rate_limit),
            retry_attempts=_env_int("RETRY_ATTEMPTS", cls.retry_attempts),
            retry_base_delay=_env_float("RETRY_BASE_DELAY", cls.retry_base_delay),
            toc_delay_seconds=_env_float("TOC_DELAY_SECONDS", cls.toc_delay_seconds),
            default_language=os.getenv("DEFAULT_LANGUAGE", cls.default_language),
            local_store_path=os.getenv("LOCAL_STORE_PATH", cls.local_store_path),
            projects_collection=os.getenv("PROJECTS_COLLECTION", cls.projects_collection),
            api_keys_collection=os.getenv("API_KEYS_COLLECTION", cls.api_keys_collection),
            google_credentials_base64=os.getenv("GOOGLE_CREDENTIALS_BASE64"),
            firebase_credentials_path=os.getenv(
                "FIREBASE_CREDENTIALS_PATH", cls.firebase_credentials_path
            ),
            secret_key=os.getenv("FLASK_SECRET_KEY", cls.secret_key),
        )
