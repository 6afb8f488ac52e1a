# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Errors raised by the Google clients."""

from refine.core.exceptions import AuthenticationError, ExternalServiceError


class GoogleAPIError(ExternalServiceError):
    """Raised when a Google endpoint fails or cannot be reached.

    Attributes:
        status_code: HTTP status returned by Google, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IdentityProviderError(GoogleAPIError):
    """Raised when the OAuth token exchange or userinfo lookup fails."""


class InvalidAccessTokenError(AuthenticationError):
    """Raised when Google rejects the bearer token."""


class DriveError(GoogleAPIError):
    """Raised when a Drive call fails."""


class AttachmentPreparationError(DriveError):
    """Raised when a file could not be shared with the service account.

    Attributes:
        attachment_title: Title of the offending attachment.
        attachment_file_id: Drive file id of the offending attachment.
    """

    def __init__(self, attachment_title: str, attachment_file_id: str) -> None:
        super().__init__(
            f"Failed to share the attachment '{attachment_title}' with the service account"
        )
        self.attachment_title = attachment_title
        self.attachment_file_id = attachment_file_id
