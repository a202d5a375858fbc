"""
MGNREGA Performance Tracker - district-level employment scheme metrics
from the data.gov.in MGNREGA dataset.
"""

__version__ = "0.1.0"

from .api_client import MGNREGAClient
from .cache import ResponseCache
from .exceptions import (
    MGNREGAError,
    NetworkError,
    RequestTimeoutError,
    UpstreamFormatError,
    ConfigurationError,
)
from .formatting import parse_or_zero, format_number, format_currency

__all__ = [
    "MGNREGAClient",
    "ResponseCache",
    "MGNREGAError",
    "NetworkError",
    "RequestTimeoutError",
    "UpstreamFormatError",
    "ConfigurationError",
    "parse_or_zero",
    "format_number",
    "format_currency",
]
