"""
Configuration Module

Reads runtime settings from the environment (and a local .env file, if
present) into a Settings object shared by the client and the CLI.
"""

# Standard library imports
import os
import logging
from dataclasses import dataclass
from typing import Optional

# Third-party imports
from dotenv import load_dotenv

# Local imports
from .exceptions import ConfigurationError

# Constants
DEFAULT_BASE_URL = 'https://api.data.gov.in/resource/ee03643a-ee4c-48c2-ac30-9f2ff26ab722'
DEFAULT_LIMIT = 1000
DEFAULT_MAX_RETRIES = 0
CACHE_TTL_SECONDS = 1800  # 30 minutes
REQUEST_TIMEOUT = 30  # seconds

API_KEY_ENV = 'MGNREGA_API_KEY'
BASE_URL_ENV = 'MGNREGA_API_BASE_URL'
MAX_RETRIES_ENV = 'MGNREGA_MAX_RETRIES'

# Logger setup
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the data-access layer.

    Attributes:
        api_key: data.gov.in API key. Required for any live request.
        base_url: Resource endpoint of the MGNREGA dataset
        max_retries: Automatic urllib3 retries per request (0 disables them)
        request_timeout: Per-request timeout in seconds
    """

    api_key: Optional[str]
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = DEFAULT_MAX_RETRIES
    request_timeout: int = REQUEST_TIMEOUT

    def require_api_key(self) -> str:
        """Return the API key or fail fast with a ConfigurationError."""
        if not isinstance(self.api_key, str) or not self.api_key.strip():
            raise ConfigurationError(
                f"API key is required. Set {API_KEY_ENV} environment variable "
                "or pass api_key parameter."
            )
        return self.api_key.strip()


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        dotenv: Load a .env file from the working directory tree first.
                Existing environment variables are never overridden.

    Returns:
        Settings instance. The API key may be None here; it is validated
        when a client is constructed.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    if dotenv:
        load_dotenv()

    raw_retries = os.getenv(MAX_RETRIES_ENV, str(DEFAULT_MAX_RETRIES))
    try:
        max_retries = int(raw_retries)
    except ValueError:
        raise ConfigurationError(f"{MAX_RETRIES_ENV} must be an integer, got {raw_retries!r}")

    if max_retries < 0:
        raise ConfigurationError(f"{MAX_RETRIES_ENV} must be non-negative")

    base_url = os.getenv(BASE_URL_ENV) or DEFAULT_BASE_URL

    settings = Settings(
        api_key=os.getenv(API_KEY_ENV),
        base_url=base_url.rstrip('/'),
        max_retries=max_retries,
    )
    logger.debug(f"Loaded settings: base_url={settings.base_url}, max_retries={settings.max_retries}")
    return settings
