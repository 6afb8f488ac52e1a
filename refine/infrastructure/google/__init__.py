# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Google integrations: OAuth token exchange, userinfo and Drive."""

from refine.infrastructure.google.drive import DriveClient, FileLink
from refine.infrastructure.google.errors import (
    AttachmentPreparationError,
    DriveError,
    GoogleAPIError,
    IdentityProviderError,
    InvalidAccessTokenError,
)
from refine.infrastructure.google.oauth import GoogleIdentityProvider, GoogleOAuthClient
from refine.infrastructure.google.service_account import ServiceAccountCredentials

__all__ = [
    "DriveClient",
    "FileLink",
    "GoogleOAuthClient",
    "GoogleIdentityProvider",
    "ServiceAccountCredentials",
    "GoogleAPIError",
    "IdentityProviderError",
    "InvalidAccessTokenError",
    "DriveError",
    "AttachmentPreparationError",
]
