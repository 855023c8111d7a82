"""
Environment-derived settings for the voice relay.

Settings are read once at process start. A `.env` file in the working directory
is loaded first if it exists. Missing credentials never stop the process; they
are reported as warnings and the affected integration fails on use.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import dotenv
from pydantic import BaseModel, Field

from voice_relay.config.constants import (
    DEFAULT_BUSINESS_LOCATION,
    DEFAULT_BUSINESS_NAME,
    DEFAULT_BUSINESS_TIMEZONE,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_TOOL_TIMEOUT,
    DEFAULT_VOICE,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)


class Settings(BaseModel):
    """Process-wide configuration for the relay server and its integrations."""

    google_api_key: Optional[str] = Field(None, description="Gemini API key")
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_voice: str = DEFAULT_VOICE

    ms_tenant_id: Optional[str] = None
    ms_client_id: Optional[str] = None
    ms_client_secret: Optional[str] = None
    ms_user_email: Optional[str] = Field(
        None, description="Mailbox whose calendar is managed"
    )

    business_name: str = DEFAULT_BUSINESS_NAME
    business_timezone: str = DEFAULT_BUSINESS_TIMEZONE
    business_location: str = DEFAULT_BUSINESS_LOCATION
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    greeting_delay: float = 0.2

    static_dir: str = "frontend"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            gemini_voice=os.getenv("GEMINI_VOICE", DEFAULT_VOICE),
            ms_tenant_id=os.getenv("MS_TENANT_ID") or None,
            ms_client_id=os.getenv("MS_CLIENT_ID") or None,
            ms_client_secret=os.getenv("MS_CLIENT_SECRET") or None,
            ms_user_email=os.getenv("MS_USER_EMAIL") or None,
            business_name=os.getenv("BUSINESS_NAME", DEFAULT_BUSINESS_NAME),
            business_timezone=os.getenv("BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE),
            business_location=os.getenv("BUSINESS_LOCATION", DEFAULT_BUSINESS_LOCATION),
            tool_timeout=float(os.getenv("TOOL_TIMEOUT_SECONDS", str(DEFAULT_TOOL_TIMEOUT))),
            greeting_delay=float(os.getenv("GREETING_DELAY_SECONDS", "0.2")),
            static_dir=os.getenv("STATIC_DIR", "frontend"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def calendar_configured(self) -> bool:
        return all(
            (self.ms_tenant_id, self.ms_client_id, self.ms_client_secret, self.ms_user_email)
        )

    def missing_settings(self) -> List[str]:
        """Names of the environment variables whose absence degrades a feature."""
        required = {
            "GOOGLE_API_KEY": self.google_api_key,
            "MS_TENANT_ID": self.ms_tenant_id,
            "MS_CLIENT_ID": self.ms_client_id,
            "MS_CLIENT_SECRET": self.ms_client_secret,
            "MS_USER_EMAIL": self.ms_user_email,
        }
        return [name for name, value in required.items() if not value]


def load_environment(env_file: Path = Path(".") / ".env") -> None:
    """Load environment variables from a .env file if it exists."""
    if env_file.exists():
        dotenv.load_dotenv(env_file)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment on first use."""
    load_environment()
    return Settings.from_env()


def log_configuration_warnings(settings: Settings) -> None:
    """Warn about missing credentials without failing startup."""
    missing = settings.missing_settings()
    if "GOOGLE_API_KEY" in missing:
        logger.warning("GOOGLE_API_KEY is not set; voice sessions will fail to connect")
    calendar_missing = [name for name in missing if name.startswith("MS_")]
    if calendar_missing:
        logger.warning(
            f"Calendar credentials missing ({', '.join(calendar_missing)}); "
            "availability and booking tools will report errors"
        )
    else:
        logger.info(f"Managing calendar for: {settings.ms_user_email}")
