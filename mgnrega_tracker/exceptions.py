"""
Exceptions Module

Error taxonomy for the MGNREGA data-access layer. Every error raised by
the client derives from MGNREGAError so callers can catch a single type.
"""

# Standard library imports
import builtins
from typing import Optional


class MGNREGAError(Exception):
    """Base class for all errors raised by mgnrega_tracker."""


class NetworkError(MGNREGAError):
    """Transport failure: DNS, refused connection, offline."""


class RequestTimeoutError(MGNREGAError, builtins.TimeoutError):
    """The upstream API did not respond within the request timeout."""


class UpstreamFormatError(MGNREGAError):
    """
    The upstream API answered, but not with a usable payload.

    Raised for non-2xx responses (``status_code`` is set) and for bodies that
    are not JSON or lack a ``records`` list (``status_code`` is the HTTP
    status of the otherwise successful response, or None).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(MGNREGAError, ValueError):
    """Operator-facing setup defect, e.g. a missing API key."""
