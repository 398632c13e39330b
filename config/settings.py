import os
import logging
from typing import Optional

from core.validators import validate_contact_email, validate_service_page_url

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings and environment variables"""

    # Watcher Configuration
    SERVICE_PAGE_URL: Optional[str] = os.getenv("SERVICE_PAGE_URL")
    CONTACT_EMAIL: Optional[str] = os.getenv("CONTACT_EMAIL")
    SCRIPT_ID: str = os.getenv("SCRIPT_ID", "")
    QUIET: bool = _env_flag("QUIET")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "80"))

    # Scheduler Configuration
    MIN_REFRESH_DELAY_SECONDS: int = 180  # Minimum allowed by Berlin.de's IKT-ZMS team
    _refresh_delay_seconds: int = int(os.getenv("REFRESH_DELAY_SECONDS", "180"))

    @property
    def REFRESH_DELAY_SECONDS(self) -> int:
        """Polling interval, never below the upstream minimum"""
        if self._refresh_delay_seconds < self.MIN_REFRESH_DELAY_SECONDS:
            logger.warning(
                f"REFRESH_DELAY_SECONDS={self._refresh_delay_seconds} is below the allowed minimum, "
                f"using {self.MIN_REFRESH_DELAY_SECONDS}"
            )
            return self.MIN_REFRESH_DELAY_SECONDS
        return self._refresh_delay_seconds

    BERLIN_API_BASE: str = "https://service.berlin.de/terminvereinbarung/termin"
    REQUEST_TIMEOUT: int = 25
    BROADCAST_SEND_TIMEOUT: int = 10
    NOTIFY_TIMEOUT: int = 5
    TIMEZONE_NAME: str = "Europe/Berlin"

    # App Configuration
    APP_NAME: str = "Burgeramt Appointment Finder"
    APP_VERSION: str = "1.1.0"
    PROJECT_URL: str = "https://github.com/skarakasoglu/burgeramt-appointment-finder"

    def validate(self) -> None:
        """Validate required settings"""
        if not self.SERVICE_PAGE_URL:
            raise RuntimeError("SERVICE_PAGE_URL is required")
        if not self.CONTACT_EMAIL:
            raise RuntimeError("CONTACT_EMAIL is required")

        try:
            self.SERVICE_PAGE_URL = validate_service_page_url(self.SERVICE_PAGE_URL)
            self.CONTACT_EMAIL = validate_contact_email(self.CONTACT_EMAIL)
        except ValueError as e:
            raise RuntimeError(str(e)) from e

    def apply_overrides(self, **overrides) -> None:
        """Apply command line overrides, ignoring values that were not given"""
        for name, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self, name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self, name, value)


# Global settings instance
settings = Settings()
