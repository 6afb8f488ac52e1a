# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bearer token authentication middleware.

This middleware extracts the Google access token from the Authorization
header and stores it on request.state. The token itself is verified by the
``require_user`` dependency, which asks Google who owns it.

Example:
    # Request with Bearer token
    GET /api/v1/schools
    Authorization: Bearer ya29.a0AfH6SM...
"""

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Paths that don't require authentication
PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/v1/auth/google-authenticate",
    "/api/v1/auth/google-refresh",
    "/api/v1/auth/google-revoke",
})


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user resolved from a Google access token.

    Attributes:
        id: User id.
        email: Google account email.
        name: Display name.
        access_token: The caller's Google access token, used to share
            their Drive files with the service account.
    """

    id: str
    email: str
    name: str
    access_token: str


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts Bearer tokens.

    Populates request.state.access_token with the token, or None when the
    header is missing, malformed or the path is public.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Extract the token and continue.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response.
        """
        request.state.access_token = None

        if not self._is_public_path(request.url.path):
            request.state.access_token = self._extract_token(request)
            if request.state.access_token is None:
                logger.debug("No bearer token on %s", request.url.path)

        return await call_next(request)

    def _is_public_path(self, path: str) -> bool:
        return path in PUBLIC_PATHS

    def _extract_token(self, request: Request) -> str | None:
        """Extract the token from the Authorization header.

        Expects format: Bearer <token>
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None

        return parts[1]


def get_access_token(request: Request) -> str | None:
    """Get the bearer token extracted by AuthMiddleware, if any."""
    return getattr(request.state, "access_token", None)
