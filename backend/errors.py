"""Application error taxonomy, mapped to ``{"error": message}`` responses in main.py."""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors surfaced to HTTP clients."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400


class AuthError(AppError):
    """Bad credentials. Never says which of email or password was wrong."""

    status_code = 400

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 400


class UpstreamError(AppError):
    """The external agent or a data source it relies on failed."""

    status_code = 500


class StoreError(AppError):
    """The database is unavailable or rejected the write."""

    status_code = 500
