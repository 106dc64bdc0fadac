"""Errors raised by the answer API client."""

from __future__ import annotations


class BackendError(Exception):
    """Base class for answer API failures."""

    def __init__(self, message: str, status_code: int | None = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class BackendUnavailableError(BackendError):
    """The answer API could not be reached or timed out."""


class NotAuthorizedError(BackendError):
    """The answer API rejected the admin token (HTTP 403)."""


class InvalidResponseError(BackendError):
    """The answer API returned a body that could not be parsed."""
