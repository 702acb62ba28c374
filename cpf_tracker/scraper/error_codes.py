from __future__ import annotations

"""Centralised error code taxonomy for tracking failures.

These codes are returned to API clients and included in structured logs so
that a failed lookup can be explained. They should stay stable.
"""


class ErrorCode:
    CONNECTION_FAILED = "connection_failed"
    SESSION_UNAVAILABLE = "session_unavailable"
    NAVIGATION_FAILED = "navigation_failed"
    ELEMENT_NOT_FOUND = "element_not_found"
    EXTRACTION_FAILED = "extraction_failed"


__all__ = ["ErrorCode"]
