"""
Error taxonomy for flight search.

Every failure the engine surfaces is a FlightSearchError carrying a structured
code, so callers (CLI, HTTP handlers) can map it to an exit code / status
without string matching. An empty search result is NOT an error.
"""

from enum import Enum


class FlightSearchErrorCode(Enum):
    """Structured error codes for flight search errors."""
    INVALID_INPUT = "INVALID_INPUT"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    MALFORMED_LEG = "MALFORMED_LEG"


class FlightSearchError(Exception):
    """Base exception for flight search errors."""
    def __init__(self, code: FlightSearchErrorCode, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"{code.value}: {message}")


class InvalidInputError(FlightSearchError):
    """Missing or malformed origin/destination code (raised before any storage access)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(FlightSearchErrorCode.INVALID_INPUT, message, details)


class StorageUnavailableError(FlightSearchError):
    """The flight leg store could not be queried. Never retried."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(FlightSearchErrorCode.STORAGE_UNAVAILABLE, message, details)


class MalformedLegError(FlightSearchError):
    """A flight leg record failed validation and must be skipped."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(FlightSearchErrorCode.MALFORMED_LEG, message, details)
