# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service account access tokens for the Drive API.

Wraps google-auth service account credentials. Refreshing is a blocking
call, so it runs in the default executor; google-auth keeps the token until
it is close to expiry.
"""

import asyncio
import logging
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from refine.infrastructure.google.errors import DriveError

logger = logging.getLogger(__name__)

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"


class ServiceAccountCredentials:
    """Access token source for a Google service account.

    An empty key leaves the account unconfigured; Drive calls that need it
    then fail with ``DriveError``.

    Attributes:
        _credentials: google-auth credentials, or None when unconfigured.
    """

    def __init__(
        self,
        info: dict[str, Any],
        token_uri: str,
        scopes: tuple[str, ...] = (DRIVE_SCOPE,),
    ) -> None:
        """Load the service account key.

        Args:
            info: Parsed service account key (client_email, private_key, ...).
            token_uri: Token endpoint used when the key does not name one.
            scopes: OAuth scopes to request.

        Raises:
            DriveError: If the key is present but malformed.
        """
        self._credentials: service_account.Credentials | None = None
        if not info.get("client_email"):
            return

        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                {"token_uri": token_uri, **info},
                scopes=list(scopes),
            )
        except ValueError as e:
            raise DriveError(f"Invalid service account key: {e}") from e

    @property
    def client_email(self) -> str:
        """Email address files must be shared with.

        Raises:
            DriveError: If no service account key is configured.
        """
        return self._require().service_account_email

    async def get_access_token(self) -> str:
        """Return a valid access token, refreshing it when needed.

        Raises:
            DriveError: If the token endpoint rejects the account or is
                unreachable.
        """
        credentials = self._require()
        if credentials.valid:
            return credentials.token

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, credentials.refresh, Request())
        except GoogleAuthError as e:
            logger.error("Service account token refresh failed: %s", e)
            raise DriveError("Failed to obtain service account access token") from e
        return credentials.token

    def _require(self) -> service_account.Credentials:
        if self._credentials is None:
            raise DriveError("Drive service account is not configured")
        return self._credentials
