# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base exception types shared by all domain services.

Domain modules subclass these (``SchoolNotFoundError(SchoolServiceError,
NotFoundError)``) and the API layer maps the bases to HTTP status codes in
one place, so routes never build error responses themselves.

Mapping:
    ValidationFailedError -> 400
    AuthenticationError -> 401
    NotFoundError -> 404 (also used for "not allowed", to avoid leaking
        whether the resource exists)
    ConflictError -> 409
    ExternalServiceError -> 502
"""


class RefineError(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error description, safe to return to clients.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailedError(RefineError):
    """Raised when a request is well-formed but semantically invalid."""


class AuthenticationError(RefineError):
    """Raised when the caller's identity cannot be established."""


class NotFoundError(RefineError):
    """Raised when a resource does not exist or is not visible to the caller."""


class ConflictError(RefineError):
    """Raised when a concurrent update was lost."""


class ExternalServiceError(RefineError):
    """Raised when an upstream provider call fails."""
