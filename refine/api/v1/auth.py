# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

These endpoints are public; they exchange Google OAuth credentials for
tokens the browser then sends as ``Authorization: Bearer <access_token>``:
- POST /google-authenticate - Exchange an authorization code for tokens
- POST /google-refresh - Exchange a refresh token for a new access token
- POST /google-revoke - Revoke the session's tokens

Example:
    POST /api/v1/auth/google-authenticate
    {
        "code": "4/0AX4XfWh..."
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from refine.api.dependencies import get_oauth_client
from refine.infrastructure.google import GoogleOAuthClient
from refine.models.auth import (
    GoogleAuthenticateRequest,
    GoogleRefreshRequest,
    GoogleRevokeRequest,
    GoogleTokenResponse,
)
from refine.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()

OAuthClient = Annotated[GoogleOAuthClient, Depends(get_oauth_client)]


@router.post(
    "/google-authenticate",
    response_model=GoogleTokenResponse,
    summary="Exchange authorization code",
)
async def google_authenticate(
    data: GoogleAuthenticateRequest,
    oauth_client: OAuthClient,
) -> GoogleTokenResponse:
    """Exchange an authorization code from the Google popup flow.

    Raises:
        IdentityProviderError: If Google rejects the code (502).
    """
    return await oauth_client.exchange_code(data.code)


@router.post(
    "/google-refresh",
    response_model=GoogleTokenResponse,
    summary="Refresh access token",
)
async def google_refresh(
    data: GoogleRefreshRequest,
    oauth_client: OAuthClient,
) -> GoogleTokenResponse:
    return await oauth_client.refresh(data.refresh_token)


@router.post(
    "/google-revoke",
    response_model=MessageResponse,
    summary="Revoke tokens",
)
async def google_revoke(
    data: GoogleRevokeRequest,
    oauth_client: OAuthClient,
) -> MessageResponse:
    """Revoke the access token and, if given, the refresh token."""
    await oauth_client.revoke(data.access_token)
    if data.refresh_token:
        await oauth_client.revoke(data.refresh_token)
    logger.info("Google tokens revoked")
    return MessageResponse(message="Signed out")
