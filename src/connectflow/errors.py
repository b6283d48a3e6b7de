"""Exception hierarchy for connection flows."""

from __future__ import annotations

from typing import Any


class ConnectflowError(Exception):
    """Base class for all flow errors."""


class ConfigurationError(ConnectflowError):
    """Raised before any network call when required inputs are missing."""


class UpstreamError(ConnectflowError):
    """Raised when a service answers with an error status or a malformed body."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        # decoded JSON error body, None when the body was not JSON
        self.body = body


class SubmissionError(ConnectflowError):
    """Answer submission failed; callers fall back to the initial candidates."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class TransportError(ConnectflowError):
    """Network failure or timeout while talking to a service."""


__all__ = [
    "ConnectflowError",
    "ConfigurationError",
    "UpstreamError",
    "SubmissionError",
    "TransportError",
]
