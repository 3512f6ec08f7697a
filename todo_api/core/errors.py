"""
Application error taxonomy.

Services raise these; ``todo_api.main`` renders them into the standard
``{"error": CODE, "message": ...}`` body. ``ConfigurationError`` is never
rendered: it is raised before the app starts serving traffic.
"""
from __future__ import annotations

from typing import Any


class ConfigurationError(RuntimeError):
    """Required startup configuration is missing or invalid."""


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class InvalidCredential(AppError):
    """The external identity assertion was rejected."""

    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Invalid credentials"


class Unauthenticated(AppError):
    """The session token is invalid, expired, or resolves to no active account."""

    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Could not validate credentials"


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ValidationFailure(AppError):
    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Invalid request payload"
