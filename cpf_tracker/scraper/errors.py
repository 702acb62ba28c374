"""Exceptions raised by a single ``track()`` call."""
from __future__ import annotations

from .error_codes import ErrorCode


class TrackingError(Exception):
    error_code: str = "internal_error"

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code


class ConnectionFailed(TrackingError):
    """The browser session could not be established or re-established."""

    error_code = ErrorCode.CONNECTION_FAILED


class SessionUnavailable(TrackingError):
    """A page could not be opened, even after one reconnect."""

    error_code = ErrorCode.SESSION_UNAVAILABLE


class NavigationFailed(TrackingError):
    error_code = ErrorCode.NAVIGATION_FAILED


class ElementNotFound(TrackingError):
    """The tracking form did not render the expected controls."""

    error_code = ErrorCode.ELEMENT_NOT_FOUND


class ExtractionFailed(TrackingError):
    error_code = ErrorCode.EXTRACTION_FAILED


__all__ = [
    "TrackingError",
    "ConnectionFailed",
    "SessionUnavailable",
    "NavigationFailed",
    "ElementNotFound",
    "ExtractionFailed",
]
